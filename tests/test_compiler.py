from __future__ import annotations

import pytest

from stagerunner.compiler import ACTIONS, PKG_IDENT, PKG_NAME, PKG_ORIGIN, compile_commands
from stagerunner.errors import InvalidAction, InvalidParameters
from stagerunner.model import ArtifactLocation, ParameterSet

FULL_PARAMS = ParameterSet({
    "command": "ignored-here",
    "instanceId": "i-0123",
    "habitattoken": "tok123",
    "githubToken": "gh456",
})
ARTIFACT = ArtifactLocation(bucket="b", key="k")


def test_static_analysis_is_a_single_syntax_check():
    assert compile_commands("Test-StaticAnalysis", ParameterSet()) == [
        "bash -n /tmp/SourceOutput/plan.sh",
    ]


def test_stage_source_code_copies_and_extracts_the_artifact():
    cmds = compile_commands("Stage-SourceCode", ParameterSet(), ARTIFACT)

    copies = [c for c in cmds if "s3://b/k" in c]
    assert copies == ["aws s3 cp s3://b/k /tmp/SourceOutput.zip"]

    extracts = [c for c in cmds if "unzip" in c]
    assert len(extracts) == 1
    assert "/tmp/SourceOutput.zip" in extracts[0]
    assert extracts[0].startswith("rm -rf /tmp/SourceOutput && mkdir /tmp/SourceOutput")
    assert cmds[0] == "aws configure set s3.signature_version s3v4"


@pytest.mark.parametrize("action", ACTIONS)
def test_every_action_compiles_to_a_stable_nonempty_sequence(action):
    first = compile_commands(action, FULL_PARAMS, ARTIFACT)
    second = compile_commands(action, FULL_PARAMS, ARTIFACT)
    assert first
    assert first == second
    assert all(isinstance(c, str) and c for c in first)


@pytest.mark.parametrize("action", ["Nonexistent-Action", "", "test-staticanalysis", None])
def test_unknown_action_is_rejected(action):
    with pytest.raises(InvalidAction) as exc_info:
        compile_commands(action, FULL_PARAMS, ARTIFACT)
    assert exc_info.value.action == action
    assert exc_info.value.kind == "invalid_action"
    assert str(exc_info.value) == f"Invalid Command: {action}"


def test_stage_source_code_requires_an_artifact():
    with pytest.raises(InvalidParameters) as exc_info:
        compile_commands("Stage-SourceCode", FULL_PARAMS)
    assert exc_info.value.missing == ["input_artifact"]


@pytest.mark.parametrize("action", ["Initialize-Habitat", "Publish-HabitatPackage"])
def test_token_actions_require_habitat_token(action):
    with pytest.raises(InvalidParameters) as exc_info:
        compile_commands(action, ParameterSet({"instanceId": "i-0123"}))
    assert exc_info.value.missing == ["habitattoken"]


def test_initialize_habitat_exports_token_and_origin():
    cmds = compile_commands("Initialize-Habitat", FULL_PARAMS)
    assert cmds == [
        "export HAB_AUTH_TOKEN=tok123",
        f"export HAB_ORIGIN={PKG_ORIGIN}",
        f"hab origin key generate {PKG_ORIGIN}",
        f"hab origin key upload {PKG_ORIGIN}",
    ]


def test_package_values_stay_as_remote_shell_expressions():
    assert PKG_ORIGIN == "$(awk -F= '/^pkg_origin/{print $2}' /tmp/SourceOutput/plan.sh)"
    assert PKG_NAME == "$(awk -F= '/^pkg_name/{print $2}' /tmp/SourceOutput/plan.sh)"
    assert PKG_IDENT == f"{PKG_ORIGIN}/{PKG_NAME}"

    cmds = compile_commands("Create-TestEnvironment", FULL_PARAMS)
    assert cmds[0] == "cd SourceOutput"
    assert cmds[-2] == f'hab studio run "hab pkg export docker {PKG_IDENT}"'
    assert cmds[-1] == f"docker run -it -d -p 8080:8080 --name {PKG_NAME} {PKG_IDENT}"
    assert any(c.startswith("purge_containers=") for c in cmds)
    assert any(c.startswith("purge_images=") for c in cmds)


def test_build_copies_results_to_pipeline_dir():
    (cmd,) = compile_commands("Build-HabitatPackage", ParameterSet())
    assert cmd.startswith("cd /tmp/SourceOutput && hab pkg build .")
    assert cmd.endswith('cp -r /tmp/SourceOutput/results "$_"')


def test_publish_uploads_artifact_named_by_last_build():
    cmds = compile_commands("Publish-HabitatPackage", FULL_PARAMS)
    assert cmds[0] == "cd /tmp/pipeline/hab/results"
    assert cmds[1] == "export HAB_AUTH_TOKEN=tok123"
    assert cmds[2] == (
        "hab pkg upload $(awk -F= '/^pkg_artifact/{print $2}' "
        "/tmp/pipeline/hab/results/last_build.env)"
    )


def test_token_with_shell_metacharacters_is_quoted():
    params = ParameterSet({"habitattoken": "a b;rm -rf /"})
    cmds = compile_commands("Initialize-Habitat", params)
    assert cmds[0] == "export HAB_AUTH_TOKEN='a b;rm -rf /'"


def test_test_habitat_package_runs_bats():
    assert compile_commands("Test-HabitatPackage") == ["bats --tap /tmp/SourceOutput/test.bats"]
