"""Install pip into the interpreter running this script.

Runs under the target interpreter, so it may only use the standard library.
"""

import os
import subprocess
import sys
import tempfile
import urllib.request

GET_PIP_URL = "https://bootstrap.pypa.io/get-pip.py"


def _ensurepip() -> bool:
    try:
        import ensurepip
    except ImportError:
        return False
    print("Installing pip with ensurepip", flush=True)
    ensurepip.bootstrap(upgrade=True)
    return True


def _get_pip() -> int:
    print(f"Downloading {GET_PIP_URL}", flush=True)
    fd, script = tempfile.mkstemp(suffix=".py")
    try:
        with os.fdopen(fd, "wb") as out, urllib.request.urlopen(GET_PIP_URL, timeout=60) as src:
            out.write(src.read())
        return subprocess.call([sys.executable, script])
    finally:
        os.unlink(script)


def main() -> int:
    if _ensurepip():
        return 0
    return _get_pip()


if __name__ == "__main__":
    sys.exit(main())
