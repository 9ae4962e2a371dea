"""例外型のユニットテスト"""

from k1s0_experiment import ExperimentError, ExperimentErrorCodes, PanicRecoveredError


def test_experiment_error_str() -> None:
    err = ExperimentError(ExperimentErrorCodes.LOOKUP_NOT_FOUND, "feature not found: f")
    assert str(err) == "LOOKUP_NOT_FOUND: feature not found: f"
    assert err.message == "feature not found: f"


def test_experiment_error_cause() -> None:
    cause = ValueError("bad")
    err = ExperimentError(ExperimentErrorCodes.PARSE_FAILURE, "cannot parse", cause=cause)
    assert err.__cause__ is cause


def test_panic_recovered_error_keeps_fault_text() -> None:
    cause = RuntimeError("I'm panicking")
    err = PanicRecoveredError(cause)
    assert str(err) == "I'm panicking"
    assert err.code == ExperimentErrorCodes.PANIC_RECOVERED
    assert err.__cause__ is cause
    assert isinstance(err, ExperimentError)
