"""
Cargo Target Locator
====================
Finds, selects and builds the binary to analyse in a Rust crate.

Flow:
    1. `cargo metadata` for the manifest (no deps, offline)
    2. Keep binary targets of the package owning that manifest
    3. Resolve each target's path under <target_directory>/<build>/
    4. Pick the requested target (or the only one)
    5. `cargo build` it

Only binaries, examples and benches are supported. Test and custom-build
targets are skipped.
"""
import json
import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from vgreport.core.config import CARGO_BIN
from vgreport.core.errors import CargoError

logger = logging.getLogger(__name__)


class Build(str, Enum):
    DEBUG = "debug"
    RELEASE = "release"


class TargetKind(str, Enum):
    BINARY = "bin"
    EXAMPLE = "example"
    BENCH = "bench"


# Sub-directory of <target_directory>/<build>/ holding each kind
_KIND_DIRS: dict[TargetKind, str] = {
    TargetKind.BINARY:  "",
    TargetKind.EXAMPLE: "examples",
    TargetKind.BENCH:   "benches",
}


@dataclass(frozen=True)
class Target:
    kind: TargetKind
    name: str
    path: Path


# ---------------------------------------------------------------------------
# cargo invocations
# ---------------------------------------------------------------------------
def _run_cargo(args: list[str], cargo_bin: str = CARGO_BIN) -> str:
    """Run cargo and return stdout. Raises CargoError with cargo's message."""
    command = [cargo_bin, *args]
    logger.debug("Executing: %s", " ".join(command))
    try:
        completed = subprocess.run(command, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise CargoError(f"cargo not found: {cargo_bin}") from e

    if completed.returncode != 0:
        msg = completed.stderr.strip()
        if msg.startswith("error: "):
            msg = msg[len("error: "):]
        raise CargoError(f"cargo command failed: {msg}")
    return completed.stdout


def cargo_metadata(manifest: Path) -> str:
    """Return the JSON output of `cargo metadata` for `manifest`."""
    return _run_cargo([
        "metadata",
        "--format-version=1",
        "--no-deps",
        "--offline",
        "--manifest-path",
        str(manifest),
    ])


def targets_from_metadata(metadata: dict, manifest: Path, build: Build) -> list[Target]:
    """
    Extract binary targets of the package owning `manifest`.

    Split from targets() so prepared metadata can be tested without cargo.
    `manifest` must already be resolved (absolute).
    """
    try:
        target_dir = Path(metadata["target_directory"]) / build.value
        packages = metadata["packages"]
    except (KeyError, TypeError) as e:
        raise CargoError(f"Invalid metadata: missing {e}") from e

    result: list[Target] = []
    for package in packages:
        if Path(package.get("manifest_path", "")) != manifest:
            continue
        for target in package.get("targets", []):
            if "bin" not in target.get("crate_types", []):
                continue
            kinds = target.get("kind") or [""]
            try:
                kind = TargetKind(kinds[0])
            except ValueError:
                logger.debug("Skipping unsupported %s target %r", kinds[0], target.get("name"))
                continue
            name = target["name"]
            result.append(Target(kind=kind, name=name, path=target_dir / _KIND_DIRS[kind] / name))
    return result


def targets(manifest: Path, build: Build) -> list[Target]:
    """List every binary target of the crate denoted by `manifest`."""
    manifest = Path(manifest).resolve()
    raw = cargo_metadata(manifest)
    try:
        metadata = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CargoError(f"Invalid metadata: {e}") from e
    return targets_from_metadata(metadata, manifest, build)


def find_target(
    specified: Optional[tuple[TargetKind, str]],
    available: list[Target],
) -> Target:
    """
    Select the target to analyse.

    When nothing was requested the crate must have exactly one target.
    """
    if specified is None:
        if len(available) == 1:
            return available[0]
        if not available:
            raise CargoError("No binary target found in the crate")
        raise CargoError("Multiple possible targets, please specify more precise")

    kind, name = specified
    for target in available:
        if target.kind is kind and target.name == name:
            return target
    raise CargoError(f"Could not find selected {kind.value} `{name}`")


def build_target(manifest: Path, build: Build, target: Target) -> None:
    """Build `target` with cargo. Raises CargoError on failure."""
    args = ["build", "--manifest-path", str(manifest), f"--{target.kind.value}", target.name]
    if build is Build.RELEASE:
        args.append("--release")
    logger.info("Building %s `%s` (%s)", target.kind.value, target.name, build.value)
    _run_cargo(args)
