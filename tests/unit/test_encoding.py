"""Tests for core/encoding.py."""

from __future__ import annotations

from equipark.core.encoding import REPLACEMENT_CHAR, detect_encoding, replacement_ratio


class TestReplacementRatio:
    def test_clean_text(self):
        assert replacement_ratio("hola") == 0.0

    def test_half_replaced(self):
        assert replacement_ratio("ab" + REPLACEMENT_CHAR * 2) == 0.5

    def test_empty_text_counts_as_unreadable(self):
        assert replacement_ratio("") == 1.0


class TestDetectEncoding:
    def test_utf8(self):
        text, encoding, fell_back = detect_encoding("Atención;Año\n".encode("utf-8"))
        assert encoding == "utf-8-sig"
        assert text == "Atención;Año\n"
        assert fell_back is False

    def test_bom_is_stripped(self):
        text, encoding, _ = detect_encoding(b"\xef\xbb\xbfusuario;ram\n")
        assert encoding == "utf-8-sig"
        assert text.startswith("usuario")

    def test_windows_1252(self):
        raw = "Año;Atención;Región\nÑandú;Sí;Bogotá\n".encode("cp1252")
        text, encoding, fell_back = detect_encoding(raw)
        assert encoding == "cp1252"
        assert "Atención" in text
        assert fell_back is False

    def test_latin1_for_bytes_undefined_in_cp1252(self):
        raw = b"a;b\n\x81\x8d\x8f;\x90\x9d\n"
        _, encoding, fell_back = detect_encoding(raw)
        assert encoding == "latin-1"
        assert fell_back is False

    def test_falls_back_to_first_candidate(self):
        text, encoding, fell_back = detect_encoding(b"\xff\xfe\xfa", candidates=("utf-8",))
        assert encoding == "utf-8"
        assert fell_back is True
        assert REPLACEMENT_CHAR in text

    def test_empty_input_falls_back(self):
        text, encoding, fell_back = detect_encoding(b"")
        assert text == ""
        assert encoding == "utf-8-sig"
        assert fell_back is True

    def test_unknown_candidate_skipped(self):
        _, encoding, _ = detect_encoding(b"abc", candidates=("no-such-codec", "utf-8"))
        assert encoding == "utf-8"
