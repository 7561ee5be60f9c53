from pathlib import Path

import yaml

from thaitax.backend.config.rate_config import RATES_FILE, AllowanceType, load_rate_configuration
from thaitax.backend.config.validator import main, validate_rate_configuration


def test_current_configuration_is_valid() -> None:
    assert validate_rate_configuration(load_rate_configuration()) == []


def test_validator_flags_decreasing_rates() -> None:
    config = load_rate_configuration()
    brackets = list(config.brackets)
    brackets[2] = brackets[2].model_copy(update={"rate": 5})
    broken = config.model_copy(update={"brackets": tuple(brackets)})

    errors = validate_rate_configuration(broken)

    assert any(error.startswith("brackets[2]") for error in errors)


def test_validator_flags_missing_claimable_rule() -> None:
    config = load_rate_configuration()
    deductions = tuple(
        rule for rule in config.deductions if rule.allowance_type is not AllowanceType.K_RECEIPT
    )
    broken = config.model_copy(update={"deductions": deductions})

    errors = validate_rate_configuration(broken)

    assert any("k-receipt" in error for error in errors)


def test_validator_flags_maximum_below_minimum() -> None:
    config = load_rate_configuration()
    deductions = tuple(
        rule.model_copy(update={"max_deduction_amount": 5_000})
        if rule.allowance_type is AllowanceType.PERSONAL
        else rule
        for rule in config.deductions
    )
    broken = config.model_copy(update={"deductions": deductions})

    errors = validate_rate_configuration(broken)

    assert any(error.startswith("deductions.personal") for error in errors)


def test_main_reports_ok_for_bundled_file(capsys) -> None:
    assert main([str(RATES_FILE)]) == 0
    assert "[rates.yaml] OK" in capsys.readouterr().out


def test_main_reports_invalid_file(tmp_path: Path, capsys) -> None:
    raw = yaml.safe_load(RATES_FILE.read_text(encoding="utf-8"))
    raw["brackets"] = raw["brackets"][1:]
    path = tmp_path / "broken.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")

    assert main([str(path), str(tmp_path / "missing.yaml")]) == 1
    output = capsys.readouterr().out
    assert "[broken.yaml] failed to load configuration" in output
    assert "[missing.yaml] failed to load configuration" in output
