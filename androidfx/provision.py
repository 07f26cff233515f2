import os
import sys
import urllib.request
from pathlib import Path

from androidfx.generator import PROVISIONED_DIR, RESOURCES_DIR

# --- CONFIGURATION ---
# The package directory may be read-only, so downloads go to PROVISIONED_DIR
WRAPPER_DIR = PROVISIONED_DIR / "gradle" / "wrapper"
WRAPPER_JAR = WRAPPER_DIR / "gradle-wrapper.jar"
GRADLEW_PATH = RESOURCES_DIR / "gradlew"

# Tool Versions & URLs
# jfxmobile-plugin 1.3.x runs on the 4.x line
GRADLE_VERSION = "4.10.3"
WRAPPER_JAR_URL = f"https://raw.githubusercontent.com/gradle/gradle/v{GRADLE_VERSION}/gradle/wrapper/gradle-wrapper.jar"

SDK_ENV_VARS = ("ANDROID_HOME", "ANDROID_SDK_ROOT")


def log(msg):
    print(f"[SETUP] {msg}")


def download_file(url: str, dest_path: Path) -> None:
    if dest_path.exists():
        log(f"{dest_path.name} is already installed.")
        return
    log(f"Downloading {url}...")
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    # Download next to the target so a broken transfer never looks installed
    partial = dest_path.with_name(dest_path.name + ".part")
    urllib.request.urlretrieve(url, partial)
    partial.replace(dest_path)


def fetch_wrapper_jar() -> Path:
    download_file(WRAPPER_JAR_URL, WRAPPER_JAR)
    return WRAPPER_JAR


def prepare_launcher() -> None:
    # The generator chmods its own copy, so a read-only install is fine
    if GRADLEW_PATH.exists() and os.access(GRADLEW_PATH, os.W_OK):
        os.chmod(GRADLEW_PATH, 0o755)


def find_android_sdk() -> str | None:
    for name in SDK_ENV_VARS:
        value = os.environ.get(name)
        if value and Path(value).is_dir():
            return value
    return None


def main():
    print("=== ANDROIDFX SETUP ===")

    try:
        fetch_wrapper_jar()
        prepare_launcher()
    except Exception as e:
        print(f"\n[ERROR] Setup failed: {e}")
        sys.exit(1)

    sdk = find_android_sdk()
    if sdk:
        log(f"Android SDK found at {sdk}")
    else:
        log("No Android SDK found. Set ANDROID_HOME or pass the SDK path per build.")

    print("\n=== SETUP COMPLETE ===")
    print("Environment ready. You can now run 'python -m androidfx.app'")


if __name__ == "__main__":
    main()
