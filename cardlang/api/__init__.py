"""
API Module - embedding surface and spec-test runner.

Host programs (a shell, an editor plugin, the CLI) use this module to render
stacks and to run scripted spec tests against a parsed program.
"""

from .schemas import (
    OutcomeKind,
    MoveSpec,
    StackExpectation,
    SpecTest,
    SpecTestResult,
    SpecTestReport,
)
from .service import render_stack, load_spec_tests, run_spec_tests, run_spec_test

__all__ = [
    "OutcomeKind",
    "MoveSpec",
    "StackExpectation",
    "SpecTest",
    "SpecTestResult",
    "SpecTestReport",
    "render_stack",
    "load_spec_tests",
    "run_spec_tests",
    "run_spec_test",
]
