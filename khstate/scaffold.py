"""Scaffold a minimal Terraform project wired to a KeyHarbour or Terraform Cloud backend."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENDPOINT = "https://api.keyharbour.test"
DEFAULT_MODULE = "infra"
WORKSPACE_PLACEHOLDER = "YOUR_WORKSPACE_UUID"


class ScaffoldError(Exception):
    """Raised when a project cannot be scaffolded."""


class MissingValueError(ScaffoldError):
    """A required value was not given."""


class InvalidValueError(ScaffoldError):
    """A value was given but cannot be used."""


def sanitize(text):
    """Lower-case ``text``, trim it and turn spaces into dashes."""
    return text.strip().lower().replace(" ", "-")


_BACKEND_TF = """terraform {
  backend "http" {}
}"""

_VERSIONS_TF = """terraform {
  required_version = ">= 1.6.0"
  required_providers {
    null = {
      source  = "hashicorp/null"
      version = ">= 3.2.2"
    }
  }
}"""

_PROVIDERS_TF = 'provider "null" {}'

_VARIABLES_TF = """variable "project" {
  description = "Project name"
  type        = string
}

variable "environment" {
  description = "Deployment environment (e.g., dev, staging, prod)"
  type        = string
}

variable "module" {
  description = "Module/component name"
  type        = string
  default     = "infra"
}"""

_OUTPUTS_TF = """output "project" {
  value = var.project
}

output "environment" {
  value = var.environment
}"""

_GITIGNORE = """# Terraform
.terraform/
*.tfstate
*.tfstate.*
crash.log
"""


def _cloud_block(org, workspace):
    return (
        "terraform {\n"
        "\tcloud {\n"
        f'\t\torganization = "{org}"\n'
        "\t\tworkspaces {\n"
        f'\t\t\tname = "{workspace}"\n'
        "\t\t}\n"
        "\t}\n"
        "}"
    )


def _backend_hcl(endpoint):
    placeholder = WORKSPACE_PLACEHOLDER
    return (
        f"# Replace {placeholder} with your workspace UUID.\n"
        "# Run 'kh tf version ls' after creating the workspace to find it.\n"
        f'address        = "{endpoint}/workspaces/{placeholder}/state"\n'
        f'lock_address   = "{endpoint}/workspaces/{placeholder}/state/lock"\n'
        f'unlock_address = "{endpoint}/workspaces/{placeholder}/state/lock"\n'
        'lock_method    = "POST"\n'
        'unlock_method  = "DELETE"\n'
        'username       = "kh"\n'
        "# password is read from TF_HTTP_PASSWORD environment variable\n"
        "retry_max      = 2\n"
    )


def _main_tf(name, env, module):
    return f"""locals {{
  project     = "{name}"
  environment = "{env}"
  module      = "{module}"
}}

resource "null_resource" "placeholder" {{
  triggers = {{
    project     = local.project
    environment = local.environment
    module      = local.module
  }}
}}
"""


def _readme(name, env, module):
    return f"""# {name} / {module} / {env}

This folder was scaffolded by kh to bootstrap a Terraform project with a backend managed by KeyHarbour or Terraform Cloud.

How to use:

1. (HTTP backend) Replace YOUR_WORKSPACE_UUID in backend.hcl with your workspace UUID.
   Create the workspace first, then run 'kh tf version ls' to find the UUID.

2. Set your API token:

   export TF_HTTP_PASSWORD=<your-kh-token>

3. Initialize backend (HTTP backend uses backend.hcl):

   terraform init -backend-config=backend.hcl

4. Optional: set variables (or edit locals in main.tf):

   terraform plan -var="project={name}" -var="environment={env}" -var="module={module}"

Notes:
- For HTTP backend: backend.tf uses partial configuration; backend.hcl carries the KeyHarbour addresses.
- For Terraform Cloud backend: cloud.tf defines the cloud block (no backend.hcl required).
- Commit .terraform.lock.hcl after the first init.
"""


def scaffold_terraform_project(
    directory,
    name,
    env,
    module=DEFAULT_MODULE,
    endpoint="",
    force=False,
    backend_type="http",
    tfc_org="",
    tfc_workspace="",
):
    """Create a project under ``directory/module/env`` and return that path."""
    if not name:
        raise MissingValueError("name is required")
    if not env:
        raise MissingValueError("env is required")
    module = module or DEFAULT_MODULE
    backend_type = backend_type or "http"

    files = {
        "versions.tf": _VERSIONS_TF,
        "providers.tf": _PROVIDERS_TF,
        "variables.tf": _VARIABLES_TF,
        "outputs.tf": _OUTPUTS_TF,
        "main.tf": _main_tf(name, env, module),
        "README.md": _readme(name, env, module),
        ".gitignore": _GITIGNORE,
    }
    if backend_type == "http":
        endpoint = (endpoint or DEFAULT_ENDPOINT).rstrip("/")
        files["backend.tf"] = _BACKEND_TF
        files["backend.hcl"] = _backend_hcl(endpoint)
    elif backend_type == "cloud":
        if not tfc_org:
            raise MissingValueError(
                "--tfc-org (or TF_CLOUD_ORGANIZATION) is required for --backend=cloud"
            )
        if not tfc_workspace:
            tfc_workspace = f"{sanitize(name)}-{sanitize(module)}-{sanitize(env)}"
        files["cloud.tf"] = _cloud_block(tfc_org, tfc_workspace)
    else:
        raise InvalidValueError(f"unsupported backend: {backend_type} (use http|cloud)")

    target = os.path.join(directory, module, env)
    os.makedirs(target, mode=0o755, exist_ok=True)

    paths = {Path(target, filename): content for filename, content in files.items()}
    if not force:
        for path in paths:
            if path.exists():
                raise InvalidValueError(
                    f"refusing to overwrite existing file without --force: {path}"
                )
    for path, content in paths.items():
        path.write_text(content, encoding="utf-8")
    return target