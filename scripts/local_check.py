import subprocess
import sys
import tomllib


def run(cmd, desc, fix=False):
    print(f"\n{'🔧' if fix else '🧪'} {desc} ...")
    try:
        subprocess.run(cmd, check=True, shell=True)
    except subprocess.CalledProcessError as e:
        print(f"⚠️  {desc} failed ({e.returncode})")


def check_toml():
    try:
        with open("pyproject.toml", "rb") as f:
            tomllib.load(f)
        print("✅ TOML syntax OK")
    except Exception as e:
        print(f"❌ TOML error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    check_toml()
    run("python -m black src tests scripts", "Black formatting", fix=True)
    run("ruff check src tests scripts", "Ruff lint")
    run("mypy src/alchemist", "Mypy type check")
    run("python -m pytest -q", "Pytest")
    run("python scripts/gen_schemas.py", "JSON schemas")
    print("\n🏁 Local check completed.")
