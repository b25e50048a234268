# compiler.py
from __future__ import annotations

import shlex
from typing import Callable, Dict, List, Optional

from .errors import InvalidAction, InvalidParameters
from .model import ArtifactLocation, ParameterSet

# ---------------------------------------------------------------------
# Staging layout on the instance (working directory is /tmp)
# ---------------------------------------------------------------------

SOURCE_DIR = "/tmp/SourceOutput"
SOURCE_ZIP = "/tmp/SourceOutput.zip"
PLAN_FILE = f"{SOURCE_DIR}/plan.sh"
TEST_FILE = f"{SOURCE_DIR}/test.bats"
RESULTS_DIR = "/tmp/pipeline/hab/results"
LAST_BUILD_FILE = f"{RESULTS_DIR}/last_build.env"

# ---------------------------------------------------------------------
# Deferred shell expressions
# ---------------------------------------------------------------------
# The package origin/name/artifact live in files that only exist on the
# instance. These expressions are emitted as-is and expanded by the remote
# shell when the command runs; never evaluate them here.


def _plan_value(var: str) -> str:
    return f"$(awk -F= '/^{var}/{{print $2}}' {PLAN_FILE})"


PKG_ORIGIN = _plan_value("pkg_origin")
PKG_NAME = _plan_value("pkg_name")
PKG_IDENT = f"{PKG_ORIGIN}/{PKG_NAME}"
PKG_ARTIFACT = f"$(awk -F= '/^pkg_artifact/{{print $2}}' {LAST_BUILD_FILE})"


def _require(action: str, **values: Optional[object]) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise InvalidParameters(action, missing)


# ---------------------------------------------------------------------
# Per-action builders
# ---------------------------------------------------------------------

def _stage_source_code(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    _require("Stage-SourceCode", input_artifact=artifact)
    return [
        "aws configure set s3.signature_version s3v4",
        f"aws s3 cp {shlex.quote(artifact.uri)} {SOURCE_ZIP}",
        f"rm -rf {SOURCE_DIR} && mkdir {SOURCE_DIR} && unzip {SOURCE_ZIP} -d {SOURCE_DIR}",
    ]


def _initialize_habitat(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    _require("Initialize-Habitat", habitattoken=params.habitat_token)
    return [
        f"export HAB_AUTH_TOKEN={shlex.quote(params.habitat_token)}",
        f"export HAB_ORIGIN={PKG_ORIGIN}",
        f"hab origin key generate {PKG_ORIGIN}",
        f"hab origin key upload {PKG_ORIGIN}",
    ]


def _test_static_analysis(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    return [f"bash -n {PLAN_FILE}"]


def _build_habitat_package(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    return [
        f"cd {SOURCE_DIR} && hab pkg build . && mkdir -p /tmp/pipeline/hab "
        f"&& cp -r {SOURCE_DIR}/results \"$_\"",
    ]


def _create_test_environment(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    return [
        "cd SourceOutput",
        f"export HAB_ORIGIN={PKG_ORIGIN}",
        "purge_containers=$(if [ $(docker ps -a -q | wc -l) -gt 0 ]; "
        "then docker rm -f -v $(docker ps -a -q); fi)",
        "purge_images=$(if [ $(docker images -q | wc -l) -gt 0 ]; "
        "then docker rmi -f $(docker images -q); fi)",
        f"hab studio run \"hab pkg export docker {PKG_IDENT}\"",
        f"docker run -it -d -p 8080:8080 --name {PKG_NAME} {PKG_IDENT}",
    ]


def _test_habitat_package(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    return [f"bats --tap {TEST_FILE}"]


def _publish_habitat_package(params: ParameterSet, artifact: Optional[ArtifactLocation]) -> List[str]:
    _require("Publish-HabitatPackage", habitattoken=params.habitat_token)
    return [
        f"cd {RESULTS_DIR}",
        f"export HAB_AUTH_TOKEN={shlex.quote(params.habitat_token)}",
        f"hab pkg upload {PKG_ARTIFACT}",
    ]


Builder = Callable[[ParameterSet, Optional[ArtifactLocation]], List[str]]

# Pipeline order
_BUILDERS: Dict[str, Builder] = {
    "Stage-SourceCode": _stage_source_code,
    "Initialize-Habitat": _initialize_habitat,
    "Test-StaticAnalysis": _test_static_analysis,
    "Build-HabitatPackage": _build_habitat_package,
    "Create-TestEnvironment": _create_test_environment,
    "Test-HabitatPackage": _test_habitat_package,
    "Publish-HabitatPackage": _publish_habitat_package,
}

ACTIONS = tuple(_BUILDERS)


def compile_commands(
    action: Optional[str],
    params: Optional[ParameterSet] = None,
    artifact: Optional[ArtifactLocation] = None,
) -> List[str]:
    """
    Turn a pipeline action into the shell commands to run on the instance.

    Pure: the result depends only on the arguments.

    Raises:
        InvalidAction: action is not one of ACTIONS
        InvalidParameters: a required parameter or the input artifact is missing
    """
    builder = _BUILDERS.get(action or "")
    if builder is None:
        raise InvalidAction(action)
    return builder(params or ParameterSet(), artifact)
