"""Tests for core/normalizers.py."""

from __future__ import annotations

import pytest

from equipark.core.normalizers import (
    as_text,
    normalize_fields,
    parse_attention_mode,
    parse_cpu_speed,
    parse_disk_capacity_gb,
    parse_disk_type,
    parse_processor,
    parse_ram_gb,
    parse_speed_mbps,
)
from equipark.models.job import WarningCode
from equipark.models.record import AttentionMode


class TestParseProcessor:
    def test_full_intel_description(self):
        info = parse_processor("Intel(R) Core(TM) i5-10400 CPU @ 2.90GHz")
        assert info.brand == "Intel"
        assert info.model == "Core i5-10400"
        assert info.speed_ghz == pytest.approx(2.9)

    def test_amd_ryzen(self):
        info = parse_processor("AMD Ryzen 7 5700G with Radeon Graphics")
        assert info.brand == "AMD"
        assert info.model == "Ryzen 7 5700G"
        assert info.speed_ghz is None

    def test_brand_from_family(self):
        info = parse_processor("i7-8550U 1.80GHz")
        assert info.brand == "Intel"
        assert info.model == "Core i7-8550U"
        assert info.speed_ghz == pytest.approx(1.8)

    def test_family_without_number(self):
        info = parse_processor("Intel Core i5 10th gen 3.1 GHz")
        assert info.model == "Core i5"
        assert info.speed_ghz == pytest.approx(3.1)

    def test_speed_after_at_sign(self):
        assert parse_processor("Core i5 @ 3,2").speed_ghz == pytest.approx(3.2)

    def test_other_intel_families(self):
        info = parse_processor("Intel Celeron N4020")
        assert (info.brand, info.model) == ("Intel", "Celeron")

    def test_unknown_processor_kept(self):
        info = parse_processor("Apple M1")
        assert info.brand is None
        assert info.model == "Apple M1"

    def test_empty(self):
        info = parse_processor(None)
        assert info.model is None


class TestUnits:
    @pytest.mark.parametrize("raw,expected", [
        (3.2, 3.2), (2900, 2.9), ("2900 MHz", 2.9), ("3.4GHz", 3.4), ("3,4 ghz", 3.4),
    ])
    def test_cpu_speed(self, raw, expected):
        assert parse_cpu_speed(raw) == pytest.approx(expected)

    def test_cpu_speed_unreadable(self):
        assert parse_cpu_speed("fast") is None
        assert parse_cpu_speed(True) is None

    @pytest.mark.parametrize("raw,expected", [
        ("8 GB", 8), ("8192 MB", 8), (8192, 8), (16, 16), ("16GB DDR4", 16), ("4096", 4),
    ])
    def test_ram(self, raw, expected):
        assert parse_ram_gb(raw) == pytest.approx(expected)

    def test_ram_unreadable(self):
        assert parse_ram_gb("mucha") is None
        assert parse_ram_gb("DDR4") is None

    def test_digits_inside_words_are_not_sizes(self):
        assert parse_ram_gb("DDR4 8GB") == pytest.approx(8)
        assert parse_disk_capacity_gb("SATA3") is None
        assert parse_disk_capacity_gb("M.2 256GB") == pytest.approx(256)

    @pytest.mark.parametrize("raw,expected", [
        ("1 TB", 1024), ("2TB", 2048), ("512GB SSD", 512), (256, 256), ("480", 480),
    ])
    def test_disk_capacity(self, raw, expected):
        assert parse_disk_capacity_gb(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw,expected", [
        ("SSD", "SSD"), ("NVMe M.2", "SSD"), ("hdd 7200rpm", "HDD"), ("Híbrido", "HYBRID"),
        ("eMMC", "EMMC"), (512, None),
    ])
    def test_disk_type(self, raw, expected):
        assert parse_disk_type(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("100 Mbps", 100), ("1 Gbps", 1000), ("512 kbps", 0.512), (30, 30), ("15,5", 15.5),
    ])
    def test_link_speed(self, raw, expected):
        assert parse_speed_mbps(raw) == pytest.approx(expected)


class TestAttentionMode:
    @pytest.mark.parametrize("raw", ["HO", "Home Office", "Teletrabajo", "remoto", "REMOTE", "Casa"])
    def test_remote(self, raw):
        assert parse_attention_mode(raw) == AttentionMode.REMOTE

    @pytest.mark.parametrize("raw", ["OS", "Presencial", "En sitio", "ON_SITE", "Sede principal"])
    def test_on_site(self, raw):
        assert parse_attention_mode(raw) == AttentionMode.ON_SITE

    @pytest.mark.parametrize("raw", [None, "", "???", 1])
    def test_unrecognised(self, raw):
        assert parse_attention_mode(raw) is None


class TestAsText:
    def test_numbers_render_without_trailing_zero(self):
        assert as_text(16) == "16"
        assert as_text(16.0) == "16"
        assert as_text(3.5) == "3.5"

    def test_other_values(self):
        assert as_text(None) is None
        assert as_text(True) == "Yes"
        assert as_text("  PC-01 ") == "PC-01"


class TestNormalizeFields:
    def test_free_text_row(self):
        fields, warnings = normalize_fields({
            "cpu_model": "Intel(R) Core(TM) i7-8700 CPU @ 3.20GHz",
            "ram_gb": "8192 MB",
            "disk_capacity_gb": "512GB SSD",
            "attention_mode": "HO",
            "user_id": 1001,
        }, row=2)
        assert fields["cpu_brand"] == "Intel"
        assert fields["cpu_model"] == "Core i7-8700"
        assert fields["cpu_speed"] == pytest.approx(3.2)
        assert fields["ram_gb"] == pytest.approx(8)
        assert fields["disk_type"] == "SSD"
        assert fields["disk_capacity_gb"] == 512
        assert fields["attention_mode"] == AttentionMode.REMOTE
        assert fields["user_id"] == "1001"
        assert warnings == []

    def test_explicit_speed_wins_over_description(self):
        fields, _ = normalize_fields({
            "cpu_model": "Core i5-10400 @ 2.90GHz",
            "cpu_speed": 4.3,
            "attention_mode": "OS",
        })
        assert fields["cpu_speed"] == 4.3

    def test_brand_column_normalized(self):
        fields, _ = normalize_fields({"cpu_brand": "INTEL CORPORATION", "attention_mode": "OS"})
        assert fields["cpu_brand"] == "Intel"

    def test_capacity_inside_disk_type_cell(self):
        fields, _ = normalize_fields({"disk_type": "SSD 256GB", "attention_mode": "OS"})
        assert fields["disk_type"] == "SSD"
        assert fields["disk_capacity_gb"] == 256

    def test_attention_mode_defaults_to_on_site(self):
        fields, warnings = normalize_fields({"hostname": "PC-9"}, row=7)
        assert fields["attention_mode"] == AttentionMode.ON_SITE
        assert warnings[0].code == WarningCode.ATTENTION_MODE_DEFAULTED
        assert warnings[0].row == 7

    def test_unreadable_numeric_value_warns(self):
        fields, warnings = normalize_fields({"ram_gb": "mucha", "attention_mode": "OS"}, row=3)
        assert fields["ram_gb"] is None
        assert [w.code for w in warnings] == [WarningCode.VALUE_COERCION]
        assert warnings[0].column == "ram_gb"
        assert warnings[0].value == "mucha"
