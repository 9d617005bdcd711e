"""Promise executor rule on real JavaScript/TypeScript sources."""

from __future__ import annotations

import pytest

from sentinelpath.config import MODE_AT_LEAST_ONE, Config
from sentinelpath.ingestion.parser_registry import ParserRegistry
from sentinelpath.models import AnomalyType, Language, Severity
from sentinelpath.pipeline import check_source
from sentinelpath.rules.promise_executor import MESSAGES, FindingKind, PromiseExecutorRule


VALID = [
    """
    new Promise((resolve, reject) => {
      resolve('success');
    });
    """,
    """
    new Promise((resolve, reject) => {
      reject(new Error('failed'));
    });
    """,
    """
    new Promise((resolve, reject) => {
      if (condition) {
        resolve('success');
      } else {
        reject(new Error('failed'));
      }
    });
    """,
    """
    new Promise((resolve, reject) => {
      if (condition) {
        resolve('success');
        return;
      }
      reject(new Error('fallback'));
    });
    """,
    """
    new Promise((resolve, reject) => {
      try {
        resolve(riskyOperation());
      } catch (error) {
        reject(error);
      }
    });
    """,
    """
    new Promise((resolve, reject) => {
      try {
        const result = riskyOperation();
        resolve(result);
      } catch (error) {
        reject(error);
      }
    });
    """,
    """
    new Promise((resolve, reject) => {
      if (condition1) {
        if (condition2) {
          resolve('nested success');
        } else {
          reject(new Error('nested error'));
        }
      } else {
        resolve('main success');
      }
    });
    """,
    """
    new Promise((resolve, reject) => {
      setTimeout(() => resolve('later'), 100);
    });
    """,
    """
    new Promise(function (resolve, reject) {
      switch (mode) {
        case 'a':
          resolve(1);
          break;
        default:
          reject(new Error('unknown mode'));
      }
    });
    """,
    """
    new MyClass((a, b) => {
      // not a Promise
    });
    """,
]


def kinds(result):
    return [f.kind for f in result.findings]


@pytest.mark.parametrize("src", VALID)
def test_valid_executors_have_no_findings(src):
    result = check_source(src)
    assert result.findings == []
    assert not result.has_errors


def test_no_callback_at_all():
    result = check_source("""
    new Promise((resolve, reject) => {
      const data = fetchData();
    });
    """)
    assert kinds(result) == [FindingKind.NO_CALLBACK]
    assert result.findings[0].message == MESSAGES[FindingKind.NO_CALLBACK]
    assert result.findings[0].severity is Severity.ERROR
    assert result.has_errors


def test_if_without_else_is_flagged_at_the_if():
    result = check_source(
        "new Promise((resolve, reject) => {\n"
        "  if (condition) {\n"
        "    resolve('success');\n"
        "  }\n"
        "});\n"
    )
    assert kinds(result) == [FindingKind.NO_CALLBACK]
    assert result.findings[0].span.line_start == 2


def test_sequential_calls_are_multiple():
    result = check_source("""
    new Promise((resolve, reject) => {
      resolve('success');
      reject(new Error('error'));
    });
    """)
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]
    assert result.findings[0].detail["callbacks"] == 2


def test_multiple_calls_in_one_branch():
    result = check_source("""
    new Promise((resolve, reject) => {
      if (condition) {
        resolve('success');
        reject(new Error('also error'));
      } else {
        resolve('else success');
      }
    });
    """)
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]


def test_if_without_else_then_fallback_is_multiple():
    result = check_source("""
    new Promise((resolve, reject) => {
      if (condition) {
        resolve('success');
      }
      reject(new Error('fallback'));
    });
    """)
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]


def test_finally_settling_again_is_multiple_on_both_paths():
    result = check_source("""
    new Promise((resolve, reject) => {
      try {
        resolve(run());
      } catch (e) {
        reject(e);
      } finally {
        resolve();
      }
    });
    """)
    # both paths end at the same finally statement, so one finding remains
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]
    assert result.tallies["paths"] == 2


def test_missing_reject_parameter():
    result = check_source("""
    new Promise((resolve) => {
      resolve('missing reject param');
    });
    """)
    assert kinds(result) == [FindingKind.MISSING_PARAMETERS]
    assert result.findings[0].message == MESSAGES[FindingKind.MISSING_PARAMETERS]
    assert result.findings[0].detail["missing"] == "reject"


def test_no_parameters():
    result = check_source("new Promise(() => {});")
    assert kinds(result) == [FindingKind.MISSING_PARAMETERS]
    assert result.findings[0].detail["missing"] == "resolve"


def test_destructured_parameter_is_not_a_sentinel():
    result = check_source("new Promise(({ resolve }, reject) => { reject(); });")
    assert kinds(result) == [FindingKind.MISSING_PARAMETERS]


def test_renamed_parameters_are_tracked():
    result = check_source("new Promise((ok, fail) => { ok(1); fail(2); });")
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]


def test_executor_passed_by_reference_is_skipped():
    result = check_source("new Promise(executor);")
    assert result.findings == []
    assert result.tallies["executors"] == 0


def test_custom_constructor_names():
    config = Config(constructor_names=["Deferred"])
    src = "new Deferred((resolve, reject) => {}); new Promise((resolve, reject) => {});"
    result = check_source(src, config=config)
    assert kinds(result) == [FindingKind.NO_CALLBACK]
    assert result.tallies["executors"] == 1


def test_nested_promise_is_checked_separately():
    result = check_source("""
    new Promise((resolve, reject) => {
      resolve(new Promise((res, rej) => { res(1); rej(2); }));
    });
    """)
    # the outer executor counts only its own sentinels
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]
    assert result.tallies["executors"] == 2


def test_at_least_one_mode_ignores_multiple_calls():
    config = Config(mode=MODE_AT_LEAST_ONE)
    result = check_source("""
    new Promise((resolve, reject) => {
      resolve(1);
      reject(2);
    });
    """, config=config)
    assert result.findings == []


def test_at_least_one_mode_messages():
    config = Config(mode=MODE_AT_LEAST_ONE)
    missing = check_source("new Promise((resolve) => { resolve(); });", config=config)
    assert missing.findings[0].message == "Promise constructor must have a reject parameter"

    none = check_source("new Promise((resolve, reject) => { if (x) { resolve(); } });", config=config)
    assert none.findings[0].message == "Promise constructor must call resolve or reject in all execution paths"


def test_path_limit_reports_unverified():
    branches = "\n".join(f"if (c{i}) {{ log(); }}" for i in range(4))
    src = f"new Promise((resolve, reject) => {{ {branches} resolve(); }});"
    result = check_source(src, config=Config(max_paths=4))
    assert kinds(result) == [FindingKind.UNVERIFIED]
    assert result.findings[0].severity is Severity.WARN
    assert result.tallies["unverified"] == 1
    assert [a.typ for a in result.anomalies] == [AnomalyType.PATH_LIMIT_EXCEEDED]
    assert not result.has_errors


def test_path_limit_without_any_sentinel_is_no_callback():
    branches = "\n".join(f"if (c{i}) {{ log(); }}" for i in range(4))
    src = f"new Promise((resolve, reject) => {{ {branches} }});"
    result = check_source(src, config=Config(max_paths=4))
    assert kinds(result) == [FindingKind.NO_CALLBACK]


def test_configured_severity():
    result = check_source("new Promise((resolve, reject) => {});", config=Config(severity="WARN"))
    assert result.findings[0].severity is Severity.WARN
    assert not result.has_errors


def test_typescript_executor():
    src = """
    new Promise<number>((resolve: (v: number) => void, reject?: (e: Error) => void) => {
      if (ready) {
        resolve(1);
      }
    });
    """
    result = check_source(src, language=Language.TYPESCRIPT, rel_path="a.ts")
    assert kinds(result) == [FindingKind.NO_CALLBACK]
    assert result.findings[0].span.path == "a.ts"


def test_syntax_errors_are_recorded_and_analysis_continues():
    result = check_source("new Promise((resolve, reject) => { resolve(; });\nconst = ;")
    assert any(a.typ is AnomalyType.PARTIAL_PARSE for a in result.anomalies)


def test_find_executors_reports_parameter_names():
    parsed = ParserRegistry().parse_source("new Promise(function (a, b, c) {});")
    sites = list(PromiseExecutorRule().find_executors(parsed))
    assert len(sites) == 1
    assert sites[0].constructor == "Promise"
    assert sites[0].params == ("a", "b", "c")


def test_break_inside_case_branch_leaves_the_switch():
    result = check_source("""
    new Promise((resolve, reject) => {
      switch (k) {
        case 1:
          if (x) {
            resolve();
            break;
          }
          reject();
          break;
        default:
          reject();
      }
    });
    """)
    assert result.findings == []
    assert result.tallies["paths"] == 3


def test_break_out_of_loop_skips_rest_of_body():
    result = check_source("""
    new Promise((resolve, reject) => {
      for (const item of items) {
        if (item.ok) {
          resolve(item);
          break;
        }
        log(item);
      }
      reject(new Error('none'));
    });
    """)
    assert kinds(result) == [FindingKind.MULTIPLE_CALLBACKS]
    assert result.findings[0].span.line_start == 10
