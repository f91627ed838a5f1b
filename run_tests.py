#!/usr/bin/env python3
"""
Test runner for the short URL service.

Extra arguments are passed straight to pytest, e.g.
    ./run_tests.py -k stats
"""

import os
import subprocess
import sys

TEST_DB = "test.db"


def run_tests(extra_args):
    """Run the suite and remove the SQLite file the fixtures leave behind"""
    print("🧪 Running Short URL Service Tests")
    print("=" * 40)

    os.chdir(os.path.dirname(os.path.abspath(__file__)))

    command = [sys.executable, "-m", "pytest", "tests/", "-v", "--tb=short", *extra_args]
    try:
        subprocess.run(command, check=True)
        print("\n✅ All tests passed!")
        return 0
    except subprocess.CalledProcessError as e:
        print(f"\n❌ Tests failed with exit code {e.returncode}")
        return e.returncode
    except FileNotFoundError:
        print("❌ pytest not found. Install with: pip install -e '.[test]'")
        return 1
    finally:
        if os.path.exists(TEST_DB):
            os.remove(TEST_DB)


if __name__ == "__main__":
    sys.exit(run_tests(sys.argv[1:]))
