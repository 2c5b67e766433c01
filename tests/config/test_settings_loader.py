"""
Settings loading, validation and the config -> kernel bridges.
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from retail_config import DEFAULT_SETTINGS_PATH, SETTINGS_PATH_ENV, get_active_settings
from retail_config.bridges import build_code_book, default_credit_limit
from retail_config.loader import compute_checksum, load_yaml_file, parse_decimal, parse_settings
from retail_config.schema import CodeSettings, CreditSettings, StockSettings, StoreSettings
from retail_kernel.domain.codes import DEFAULT_CODE_BOOK, CodePrefix
from retail_kernel.exceptions import InvalidPrefixError


def _document(**overrides) -> dict:
    data = {
        "settings_id": "test-store",
        "version": 1,
        "store": {"name": "Test Store", "currency": "EGP"},
    }
    data.update(overrides)
    return data


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestPackagedDefaults:

    def test_defaults_load(self):
        settings = get_active_settings(DEFAULT_SETTINGS_PATH)
        assert settings.settings_id == "retail-default"
        assert settings.store.currency == "EGP"
        assert settings.credit.default_customer_limit == Decimal("0.00")
        assert settings.credit.enforce_on_sale is True
        assert settings.stock.max_commit_attempts == 5
        assert len(settings.checksum) == 64

    def test_defaults_reproduce_standard_codes(self):
        book = build_code_book(get_active_settings(DEFAULT_SETTINGS_PATH))
        assert dict(book.prefixes) == dict(DEFAULT_CODE_BOOK.prefixes)
        assert book.dated_width == DEFAULT_CODE_BOOK.dated_width
        assert book.plain_width == DEFAULT_CODE_BOOK.plain_width

    def test_settings_are_frozen(self):
        settings = get_active_settings(DEFAULT_SETTINGS_PATH)
        with pytest.raises(AttributeError):
            settings.version = 2


class TestResolution:

    def test_environment_override(self, tmp_path, monkeypatch):
        path = _write(tmp_path, _document(settings_id="from-env"))
        monkeypatch.setenv(SETTINGS_PATH_ENV, str(path))
        assert get_active_settings().settings_id == "from-env"

    def test_explicit_path_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(SETTINGS_PATH_ENV, str(tmp_path / "missing.yaml"))
        path = _write(tmp_path, _document(settings_id="explicit"))
        assert get_active_settings(path).settings_id == "explicit"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "nope.yaml")

    def test_empty_file_fails_on_required_keys(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml_file(path) == {}
        with pytest.raises(KeyError):
            get_active_settings(path)

    def test_trace_logged(self, tmp_path, captured_logs):
        path = _write(tmp_path, _document(version=3))
        settings = get_active_settings(path)
        trace = next(r for r in captured_logs() if r["event"] == "settings_loaded")
        assert trace["settings_id"] == "test-store"
        assert trace["settings_version"] == 3
        assert trace["checksum"] == settings.checksum
        assert trace["source_path"] == str(path)


class TestChecksum:

    def test_deterministic_and_order_independent(self):
        a = {"settings_id": "x", "version": 1, "store": {"name": "A", "currency": "EGP"}}
        b = {"store": {"currency": "EGP", "name": "A"}, "version": 1, "settings_id": "x"}
        assert compute_checksum(a) == compute_checksum(b)

    def test_changes_with_content(self):
        assert compute_checksum(_document()) != compute_checksum(_document(version=2))

    def test_parse_settings_records_checksum(self):
        data = _document()
        assert parse_settings(data).checksum == compute_checksum(data)


class TestSchemaValidation:

    def test_missing_store(self):
        with pytest.raises(KeyError):
            parse_settings({"settings_id": "x", "version": 1})

    @pytest.mark.parametrize(
        "overrides",
        [
            {"settings_id": ""},
            {"version": 0},
            {"store": {"name": "  "}},
            {"store": {"name": "A", "currency": "egp"}},
            {"codes": {"dated_width": 0}},
            {"codes": {"plain_width": -1}},
            {"codes": {"prefixes": ["INV"]}},
            {"codes": {"prefixes": {"INVOICE": "X", "RETURN": "X"}}},
            {"credit": {"default_customer_limit": "-1"}},
            {"credit": {"default_customer_limit": "lots"}},
            {"stock": {"max_commit_attempts": 0}},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            parse_settings(_document(**overrides))

    def test_prefix_keys_normalized(self):
        settings = parse_settings(_document(codes={"prefixes": {"invoice": "SINV"}}))
        assert settings.codes.prefixes == {"INVOICE": "SINV"}

    def test_section_defaults(self):
        settings = parse_settings(_document())
        assert settings.codes == CodeSettings()
        assert settings.credit == CreditSettings()
        assert settings.stock == StockSettings()
        assert settings.store == StoreSettings(name="Test Store")

    def test_parse_decimal(self):
        assert parse_decimal(0.1, "x") == Decimal("0.1")
        assert parse_decimal("250.00", "x") == Decimal("250.00")
        with pytest.raises(ValueError):
            parse_decimal(True, "x")


class TestBridges:

    def test_code_book_override(self):
        settings = parse_settings(
            _document(codes={"dated_width": 6, "prefixes": {"INVOICE": "S2INV"}})
        )
        book = build_code_book(settings)
        assert book.prefixes[CodePrefix.INVOICE] == "S2INV"
        assert book.prefixes[CodePrefix.RETURN] == "RET"
        assert book.generate(CodePrefix.INVOICE, 3, on="20240115") == "S2INV-20240115-000003"

    def test_unknown_kind(self):
        settings = parse_settings(_document(codes={"prefixes": {"LAYAWAY": "LAY"}}))
        with pytest.raises(ValueError, match="LAYAWAY"):
            build_code_book(settings)

    def test_bad_prefix_rejected_by_kernel(self):
        settings = parse_settings(_document(codes={"prefixes": {"INVOICE": "in-v"}}))
        with pytest.raises(InvalidPrefixError):
            build_code_book(settings)

    def test_override_colliding_with_standard_prefix(self):
        settings = parse_settings(_document(codes={"prefixes": {"INVOICE": "RET"}}))
        with pytest.raises(ValueError):
            build_code_book(settings)

    def test_default_credit_limit(self):
        settings = parse_settings(_document(credit={"default_customer_limit": 750}))
        assert default_credit_limit(settings) == Decimal("750")
