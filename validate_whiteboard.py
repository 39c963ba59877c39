#!/usr/bin/env python3
"""Quick validation script for the Whiteboard package.

This script performs basic syntax and import checks without running full tests.
Use this for quick validation during development.

Usage:
    source .venv/bin/activate  # Activate virtual environment first
    python3 validate_whiteboard.py
"""

import sys
import ast
import subprocess
from pathlib import Path


def check_syntax(filename):
    """Check if a Python file has valid syntax."""
    try:
        source = Path(filename).read_text(encoding="utf-8")
        ast.parse(source, str(filename))
        print(f"✓ {filename}: Syntax OK")
        return True
    except SyntaxError as e:
        print(f"✗ {filename}: Syntax Error")
        print(f"  Line {e.lineno}: {e.msg}")
        if e.text:
            print(f"  {e.text.rstrip()}")
        return False
    except OSError as e:
        print(f"✗ {filename}: Error - {e}")
        return False


def _is_missing_gui_dependency(error_msg):
    """Return True when an import fails due to optional GUI deps in CI."""
    return "PySide6" in error_msg or "libEGL" in error_msg or "libGL" in error_msg


def check_imports():
    """Check if modules can be imported."""
    modules = [
        ('whiteboard', [
            'BoardModel',
            'InteractionController',
            'ViewTransform',
            'create_whiteboard_window',
            'find_open_spot',
            'parse_board_diff',
        ]),
        ('whiteboard.persistence', [
            'BoardSession',
            'JsonBoardStore',
        ]),
        ('whiteboard.recommend', [
            'AssistantController',
            'RecommendationClient',
        ]),
    ]

    all_ok = True
    for module_name, items in modules:
        try:
            module = __import__(module_name, fromlist=items)
            print(f"✓ {module_name}: Module imported")
            for item_name in items:
                if hasattr(module, item_name):
                    print(f"  ✓ {item_name} found")
                else:
                    print(f"  ✗ {item_name} NOT found")
                    all_ok = False
        except ImportError as e:
            if _is_missing_gui_dependency(str(e)):
                print(f"⚠ {module_name}: Missing dependency (expected if .venv not activated)")
            else:
                print(f"✗ {module_name}: Import failed - {e}")
                all_ok = False
    return all_ok


def check_basic_functionality():
    """Check the placement solver on a known layout."""
    try:
        from whiteboard import Rect, find_open_spot

        occupied = [Rect(100, 100, 180, 120), Rect(350, 100, 180, 120)]
        assert find_open_spot(120, 110, 180, 120, occupied) == (-40, 270)
        assert find_open_spot(900, 900, 180, 120, occupied) == (900, 900)
        print("✓ find_open_spot: Basic functionality OK")
        return True
    except ImportError as e:
        if _is_missing_gui_dependency(str(e)):
            print("⚠ Basic functionality check skipped (GUI dependencies not available)")
            return True
        print(f"✗ Basic functionality check failed: {e}")
        return False
    except AssertionError:
        print("✗ find_open_spot returned an unexpected position")
        return False


def check_whiteboard_smoke():
    """Run a smoke test for `python -m whiteboard` without entering the event loop."""
    cmd = [sys.executable, "-m", "whiteboard", "--smoke"]
    result = subprocess.run(cmd, capture_output=True, text=True)

    if result.returncode == 0:
        print("✓ Whiteboard smoke test passed")
        return True

    stderr = (result.stderr or "").strip()
    stdout = (result.stdout or "").strip()
    if _is_missing_gui_dependency(stderr or stdout):
        print("⚠ Whiteboard smoke test skipped (GUI dependencies not available)")
        return True

    print("✗ Whiteboard smoke test failed")
    if stdout:
        print(stdout)
    if stderr:
        print(stderr)
    return False


def main():
    """Run all validation checks."""
    print("Whiteboard Validation")
    print("=" * 50)

    files_to_check = sorted(str(p) for p in Path("whiteboard").glob("*.py"))
    files_to_check += sorted(str(p) for p in Path(".").glob("test_*.py"))

    print("\n1. Syntax Checks")
    print("-" * 50)
    syntax_ok = all([check_syntax(f) for f in files_to_check])

    print("\n2. Import Checks")
    print("-" * 50)
    import_ok = check_imports()

    print("\n3. Basic Functionality Checks")
    print("-" * 50)
    functionality_ok = check_basic_functionality()

    print("\n4. Whiteboard Smoke Test")
    print("-" * 50)
    smoke_ok = check_whiteboard_smoke()

    print("\n" + "=" * 50)
    if syntax_ok and import_ok and functionality_ok and smoke_ok:
        print("✓ All validation checks passed!")
        return 0
    print("✗ Some validation checks failed")
    return 1


if __name__ == "__main__":
    sys.exit(main())
