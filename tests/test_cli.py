import os

from khstate.cli import build_parser, main


def test_missing_required_flags(capsys):
    code = main(["init", "project"])
    assert code == 2
    assert "required" in capsys.readouterr().err


def test_scaffold_prints_target(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("KH_ENDPOINT", raising=False)
    code = main(
        ["init", "project", "--name", "testapp", "--env", "dev", "--dir", str(tmp_path),
         "--backend", "http"]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "Scaffolded Terraform project at" in out
    assert os.path.join(str(tmp_path), "infra", "dev") in out


def test_endpoint_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("KH_ENDPOINT", "https://api.example.com/")
    code = main(["init", "project", "-n", "testapp", "-e", "dev", "-d", str(tmp_path)])
    assert code == 0
    hcl = (tmp_path / "infra" / "dev" / "backend.hcl").read_text()
    assert "https://api.example.com/workspaces/" in hcl


def test_tfc_env_var_fallback(tmp_path, monkeypatch):
    monkeypatch.setenv("TF_CLOUD_ORGANIZATION", "env-org")
    monkeypatch.setenv("TF_WORKSPACE", "env-ws")
    code = main(
        ["init", "project", "--name", "testapp", "--env", "dev", "--dir", str(tmp_path),
         "--backend", "cloud"]
    )
    assert code == 0
    cloud_tf = (tmp_path / "infra" / "dev" / "cloud.tf").read_text()
    assert '"env-org"' in cloud_tf
    assert '"env-ws"' in cloud_tf


def test_tf_init_alias_scaffolds(tmp_path, capsys):
    code = main(["tf", "init", "-n", "testapp", "-e", "prod", "-d", str(tmp_path)])
    assert code == 0
    assert (tmp_path / "infra" / "prod" / "main.tf").is_file()
    assert "Scaffolded Terraform project at" in capsys.readouterr().out


def test_parser_defaults():
    args = build_parser().parse_args(["tf", "init", "-n", "a", "-e", "dev"])
    assert args.module == "infra"
    assert args.backend == "http"
    assert args.dir == "."
    assert args.force is False


def test_scaffold_error_reported(tmp_path, capsys):
    code = main(
        ["init", "project", "-n", "testapp", "-e", "dev", "-d", str(tmp_path), "--backend", "s3"]
    )
    assert code == 1
    assert "unsupported backend" in capsys.readouterr().err


def test_overwrite_refused_then_forced(tmp_path, capsys):
    argv = ["init", "project", "-n", "testapp", "-e", "dev", "-d", str(tmp_path)]
    assert main(argv) == 0
    assert main(argv) == 1
    assert "refusing to overwrite" in capsys.readouterr().err
    assert main(argv + ["--force"]) == 0