import textwrap
from pathlib import Path

import pytest

from androidfx.build_log import BuildLog

BUILD_GRADLE = textwrap.dedent("""\
    apply plugin: 'org.javafxports.jfxmobile'

    mainClassName = '$CLASSNAME'

    jfxmobile {
        android {
            applicationPackage = '$PACKAGE'
            androidSdk = '$ANDROID_SDK'
        }
    }
""")


def write_resources(root: Path, gradlew: str = 'echo "BUILD OK $1"') -> Path:
    """Lay out a stand-in for the packaged res/ directory."""
    files = {
        "gradlew": f"#!/bin/sh\n{gradlew}\n".encode(),
        "gradlew.bat": b"@echo BUILD OK %1\r\n",
        "build.gradle": BUILD_GRADLE.encode(),
        "gradle/wrapper/gradle-wrapper.jar": b"PK\x03\x04not-really-a-jar\x00\xff",
        "gradle/wrapper/gradle-wrapper.properties": b"distributionUrl=https\\://example.invalid/gradle.zip\n",
    }
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    # Start non-executable so the generator has to fix it
    (root / "gradlew").chmod(0o644)
    return root


@pytest.fixture
def resources_dir(tmp_path: Path) -> Path:
    return write_resources(tmp_path / "res")


@pytest.fixture
def app_file(tmp_path: Path) -> Path:
    path = tmp_path / "app" / "Main.java"
    path.parent.mkdir()
    path.write_text("public class Main extends javafx.application.Application {}\n")
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def log() -> BuildLog:
    return BuildLog()
