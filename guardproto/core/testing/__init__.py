from .runner import ERROR, OK, ImplementationTests, normalize_outcome, run_protocol_test

__all__ = ["ERROR", "OK", "ImplementationTests", "normalize_outcome", "run_protocol_test"]
