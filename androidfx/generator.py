import os
import shutil
import subprocess
import sys
import threading
from pathlib import Path

# --- CONFIGURATION ---
BASE_DIR = Path(__file__).parent.absolute()
RESOURCES_DIR = BASE_DIR / "res"
# Writable home for resources fetched by androidfx-setup (the wrapper jar)
PROVISIONED_DIR = Path(
    os.environ.get("ANDROIDFX_HOME", Path.home() / ".androidfx")
).absolute()

# Copied into every generated project, in this order
RESOURCE_ENTRIES = (
    "gradlew",
    "gradlew.bat",
    "build.gradle",
    "gradle/wrapper/gradle-wrapper.jar",
    "gradle/wrapper/gradle-wrapper.properties",
)
BUILD_SCRIPT = "build.gradle"
SOURCE_SET_DIR = Path("src", "main", "java")
GRADLE_TASK = "android"
# Seconds to keep reading output once gradle has exited
STREAM_JOIN_TIMEOUT = 2.0

CLASSNAME_TOKEN = "$CLASSNAME"
PACKAGE_TOKEN = "$PACKAGE"
ANDROID_SDK_TOKEN = "$ANDROID_SDK"


def is_windows() -> bool:
    return sys.platform.startswith("win")


def configure_build_script(
    lines: list[str], class_name: str, package_name: str, android_sdk: str
) -> list[str]:
    """
    Fill in the build.gradle placeholders line by line.
    Tokens are checked in a fixed order: class name, package, SDK path.
    A line carrying the SDK path has its backslashes turned into forward slashes.
    """
    result = []
    for line in lines:
        if CLASSNAME_TOKEN in line:
            line = line.replace(CLASSNAME_TOKEN, class_name)

        if PACKAGE_TOKEN in line:
            line = line.replace(PACKAGE_TOKEN, package_name)

        if ANDROID_SDK_TOKEN in line:
            line = line.replace(ANDROID_SDK_TOKEN, android_sdk).replace("\\", "/")

        result.append(line)
    return result


class ProjectGeneratorTask:
    """Generates a gradle javafxports project and runs its android build.

    Every step logs to ``log``, any object with an ``append(line)`` method
    that is safe to call from several threads (see ``BuildLog``).
    """

    READY = "READY"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    def __init__(
        self,
        output_dir: Path,
        app_file: Path,
        package_name: str,
        android_sdk: str,
        log,
        resources_dir: Path = None,
    ):
        if not package_name:
            raise ValueError("Package name must not be empty")

        self.output_dir = Path(output_dir)
        self.app_file = Path(app_file)
        self.package_name = package_name
        self.android_sdk = android_sdk
        self.log = log
        # The default layout also looks in PROVISIONED_DIR for what the package can't ship
        if resources_dir:
            self.resource_dirs = [Path(resources_dir)]
        else:
            self.resource_dirs = [RESOURCES_DIR, PROVISIONED_DIR]

        self.state = self.READY
        self.exception = None
        self.returncode = None

    @property
    def class_name(self) -> str:
        return f"{self.package_name}.{self.app_file.stem}"

    def log_message(self, message: str) -> None:
        self.log.append(message)

    def _redirect_stream(self, stream) -> threading.Thread:
        def pump():
            try:
                for line in stream:
                    self.log_message(line.rstrip("\r\n"))
            except Exception as e:
                self.log_message(f"Failed to redirect stream: {e}")
            finally:
                stream.close()

        thread = threading.Thread(target=pump, daemon=True)
        thread.start()
        return thread

    def _run_process(self, command: list[str]) -> None:
        """Will block until the process completes."""
        self.log_message(
            f"Starting gradle build process from {self.output_dir.absolute()}"
        )

        process = subprocess.Popen(
            command,
            cwd=self.output_dir,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        )
        process.stdin.close()

        # stderr is merged, so it is None here unless that ever changes
        streams = [s for s in (process.stdout, process.stderr) if s is not None]
        pumps = [self._redirect_stream(s) for s in streams]

        process.wait()

        # A background grandchild can hold the pipe open long after gradle exits;
        # its pump is left to finish on its own
        for thread, stream in zip(pumps, streams):
            thread.join(timeout=STREAM_JOIN_TIMEOUT)
            if not thread.is_alive():
                stream.close()

        self.returncode = process.returncode
        self.log_message(f"Gradle process exited with code {process.returncode}")

    def _copy_to_output_dir(self, name: str) -> None:
        self.log_message(f"Copying {name} to {self.output_dir.absolute()}")

        destination = self.output_dir / name
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self._find_resource(name), destination)

    def _find_resource(self, name: str) -> Path:
        for resources_dir in self.resource_dirs:
            path = resources_dir / name
            if path.exists():
                return path
        # Report the missing file under the primary directory
        return self.resource_dirs[0] / name

    def _copy_app_file(self, src_dir: Path) -> None:
        # "xb" refuses to overwrite a file left over from a previous run
        with open(self.app_file, "rb") as source:
            with open(src_dir / self.app_file.name, "xb") as target:
                shutil.copyfileobj(source, target)

    def _update_gradle_build(self) -> None:
        self.log_message(f"Configuring {BUILD_SCRIPT}")

        build_script = self.output_dir / BUILD_SCRIPT
        # Only line breaks split lines; form feeds and the like stay in place
        lines = build_script.read_text(encoding="utf-8").split("\n")
        if lines[-1] == "":
            lines.pop()
        result = configure_build_script(
            lines, self.class_name, self.package_name, self.android_sdk
        )
        build_script.write_text(
            "".join(line + "\n" for line in result), encoding="utf-8", newline="\n"
        )

    def call(self) -> None:
        windows = is_windows()

        self.log_message("Starting project generation task")

        # copy gradle build files
        for name in RESOURCE_ENTRIES:
            self._copy_to_output_dir(name)

        # create source folders
        src_dir = (
            self.output_dir / SOURCE_SET_DIR / self.package_name.replace(".", os.sep)
        )
        src_dir.mkdir(parents=True, exist_ok=True)

        # copy javafx file
        self._copy_app_file(src_dir)

        self._update_gradle_build()

        # run gradle build
        if windows:
            self.log_message("OS: WINDOWS. Using gradlew.bat")
            launcher = self.output_dir / "gradlew.bat"
        else:
            self.log_message("OS: NON-WINDOWS. Using gradlew")
            launcher = self.output_dir / "gradlew"
            os.chmod(launcher, 0o755)

        self._run_process([str(launcher.absolute()), GRADLE_TASK])

    def run(self) -> bool:
        self.state = self.RUNNING
        try:
            self.call()
        except Exception as e:
            self.exception = e
            self.state = self.FAILED
            self.failed()
            return False

        self.state = self.SUCCEEDED
        self.succeeded()
        return True

    def succeeded(self) -> None:
        self.log_message("Completing project generation task")

    def failed(self) -> None:
        self.log_message(f"Project generation failed: {self.exception}")
