import os

import pytest

from khstate.scaffold import (
    InvalidValueError,
    MissingValueError,
    ScaffoldError,
    sanitize,
    scaffold_terraform_project,
)


def scaffold_and_read(directory, name, env, module, endpoint, force, backend, tfc_org, tfc_ws):
    target = scaffold_terraform_project(
        str(directory), name, env, module, endpoint, force, backend, tfc_org, tfc_ws
    )
    files = {}
    for entry in os.listdir(target):
        with open(os.path.join(target, entry), encoding="utf-8") as handle:
            files[entry] = handle.read()
    return target, files


def test_missing_name(tmp_path):
    with pytest.raises(MissingValueError, match="name is required"):
        scaffold_terraform_project(str(tmp_path), "", "dev", "infra", "", False, "http", "", "")


def test_missing_env(tmp_path):
    with pytest.raises(MissingValueError, match="env is required"):
        scaffold_terraform_project(str(tmp_path), "myapp", "", "infra", "", False, "http", "", "")


def test_unsupported_backend(tmp_path):
    with pytest.raises(InvalidValueError, match="unsupported backend"):
        scaffold_terraform_project(str(tmp_path), "myapp", "dev", "infra", "", False, "s3", "", "")


def test_cloud_backend_missing_org(tmp_path):
    with pytest.raises(MissingValueError, match="--tfc-org"):
        scaffold_terraform_project(
            str(tmp_path), "myapp", "dev", "infra", "", False, "cloud", "", ""
        )


def test_errors_share_base_class(tmp_path):
    with pytest.raises(ScaffoldError):
        scaffold_terraform_project(str(tmp_path), "", "dev")


def test_http_creates_expected_files(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "myapp", "dev", "infra", "https://api.example.com", False, "http", "", ""
    )
    expected = {
        "backend.hcl",
        "backend.tf",
        "main.tf",
        "variables.tf",
        "outputs.tf",
        "versions.tf",
        "providers.tf",
        ".gitignore",
        "README.md",
    }
    assert set(files) == expected


def test_http_directory_layout(tmp_path):
    target, _ = scaffold_and_read(tmp_path, "myapp", "prod", "network", "", False, "http", "", "")
    assert target == os.path.join(str(tmp_path), "network", "prod")


def test_http_backend_hcl_contains_endpoint_and_v2_path(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "myapp", "dev", "infra", "https://api.example.com", False, "http", "", ""
    )
    hcl = files["backend.hcl"]
    assert "https://api.example.com" in hcl
    assert "/workspaces/" in hcl
    assert "YOUR_WORKSPACE_UUID" in hcl


def test_http_default_endpoint(tmp_path):
    _, files = scaffold_and_read(tmp_path, "myapp", "dev", "infra", "", False, "http", "", "")
    assert "https://api.keyharbour.test" in files["backend.hcl"]


def test_http_endpoint_trailing_slash_normalized(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "myapp", "dev", "infra", "https://api.example.com///", False, "http", "", ""
    )
    assert "///" not in files["backend.hcl"]
    assert 'address        = "https://api.example.com/workspaces/' in files["backend.hcl"]


def test_http_default_module(tmp_path):
    target, _ = scaffold_and_read(tmp_path, "myapp", "dev", "", "", False, "http", "", "")
    assert target == os.path.join(str(tmp_path), "infra", "dev")


def test_cloud_creates_cloud_tf(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "myapp", "dev", "infra", "", False, "cloud", "my-org", "my-workspace"
    )
    assert "cloud.tf" in files
    assert "backend.tf" not in files
    assert "backend.hcl" not in files


def test_cloud_tf_contains_org_and_workspace(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "myapp", "dev", "infra", "", False, "cloud", "acme-corp", "acme-prod"
    )
    assert '"acme-corp"' in files["cloud.tf"]
    assert '"acme-prod"' in files["cloud.tf"]


def test_cloud_default_workspace_derived(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "myapp", "dev", "infra", "", False, "cloud", "my-org", ""
    )
    assert "myapp-infra-dev" in files["cloud.tf"]


def test_main_tf_contains_name_env_module(tmp_path):
    _, files = scaffold_and_read(
        tmp_path, "my-project", "staging", "api", "", False, "http", "", ""
    )
    for want in ('"my-project"', '"staging"', '"api"'):
        assert want in files["main.tf"]


def test_versions_tf_has_required_version(tmp_path):
    _, files = scaffold_and_read(tmp_path, "myapp", "dev", "infra", "", False, "http", "", "")
    assert "required_version" in files["versions.tf"]


def test_gitignore_excludes_terraform_dir(tmp_path):
    _, files = scaffold_and_read(tmp_path, "myapp", "dev", "infra", "", False, "http", "", "")
    assert ".terraform/" in files[".gitignore"]


def test_refuses_overwrite_without_force(tmp_path):
    scaffold_terraform_project(str(tmp_path), "myapp", "dev", "infra", "", False, "http", "", "")
    with pytest.raises(InvalidValueError, match="refusing to overwrite"):
        scaffold_terraform_project(
            str(tmp_path), "myapp", "dev", "infra", "", False, "http", "", ""
        )


def test_force_overwrites(tmp_path):
    scaffold_terraform_project(str(tmp_path), "myapp", "dev", "infra", "", False, "http", "", "")
    target = scaffold_terraform_project(
        str(tmp_path), "other", "dev", "infra", "", True, "http", "", ""
    )
    with open(os.path.join(target, "main.tf"), encoding="utf-8") as handle:
        assert '"other"' in handle.read()


@pytest.mark.parametrize(
    "text, expected",
    [
        ("MyProject", "myproject"),
        ("  hello world  ", "hello-world"),
        ("PROD", "prod"),
        ("already-clean", "already-clean"),
        ("Mixed CASE spaces", "mixed-case-spaces"),
    ],
)
def test_sanitize(text, expected):
    assert sanitize(text) == expected