"""pipewright examples - templates, pipelines and result interpreters.

This module demonstrates:
1. Building commands from templates with safe substitutions
2. Composing commands into pipelines
3. Reading results as text, lines, exit status and streams
4. Feeding stdin and stopping a running pipeline
"""

from __future__ import annotations

from pathlib import Path

from pipewright import (
    EXIT_STATUS,
    LINE_LIST,
    LINES,
    Environment,
    Fail,
    Ok,
    configure_logging,
    pipe,
    sh,
)

# ============================================================================
# TEMPLATES
# ============================================================================


def demo_templates() -> None:
    print("=== Templates ===")
    hostile = "report.txt; rm -rf ~"
    command = sh("ls -l {}", hostile)
    print(f"arguments: {command.arguments}")
    print(f"rendered:  {command}")

    files = ["a.txt", "b c.txt"]
    print(f"unquoted list: {sh('touch pre-{}', files).arguments}")
    print(f"quoted list:   {sh('echo {}', files).arguments}")
    print(f"inside quotes: {sh('echo \"{}\"', files).arguments}")


# ============================================================================
# PIPELINES
# ============================================================================


def demo_pipelines(env: Environment) -> None:
    print("\n=== Pipelines ===")
    words = sh("printf 'pear\\napple\\npear\\nfig\\n'")
    counted = words | sh("sort") | sh("uniq -c")
    print(f"pipeline: {counted}")
    for line in counted.exec(env, LINES):
        print(f"  {line.strip()}")

    same = pipe(words, pipe(sh("sort"), sh("uniq -c")))
    print(f"flat and equal: {same == counted} ({len(same)} stages)")


# ============================================================================
# RESULTS
# ============================================================================


def demo_results(env: Environment) -> None:
    print("\n=== Results ===")
    print(f"text:   {sh('uname -s').exec(env)!r}")
    print(f"lines:  {sh('ls -1 {}', Path(__file__).parent).exec(env, LINE_LIST)}")

    match sh("sh -c 'exit 4'").exec(env, EXIT_STATUS):
        case Ok():
            print("status: ok")
        case Fail(code):
            print(f"status: failed with {code}")

    upper = sh("tr a-z A-Z").launch(env)
    upper.supply_stdin([b"fed through stdin\n"])
    print(f"stdin:  {upper.await_result()!r}")

    with (sh("sleep 30") | sh("sleep 30")).launch(env) as sleepers:
        sleepers.kill()
        print(f"killed: {sleepers.exit_status()}")


def main() -> None:
    configure_logging(profile="rich")
    env = Environment.inherit()
    demo_templates()
    demo_pipelines(env)
    demo_results(env)


if __name__ == "__main__":
    main()
