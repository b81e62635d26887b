# khstate

Tools for working with Terraform state:

- read and write state in local `.tfstate` files, at plain HTTP endpoints and
  in Terraform Cloud workspaces, all through one small reader/writer interface
  (`khstate.objects.StateReader` and `StateWriter`);
- scaffold a minimal Terraform project wired to an HTTP state backend or to a
  Terraform Cloud `cloud` block;
- run a small HTTP state receiver for local testing.

## Installation

```
pip install khstate
```

For running the test suite:

```
pip install "khstate[test]"
pytest
```

## Command line

Two commands are installed.

### `kh`

`kh` scaffolds Terraform projects. The same options are available under two
names:

```
kh init project --name myapp --env dev
kh tf init --name myapp --env dev
```

Options:

| Option                    | Meaning                                                                 |
|---------------------------|-------------------------------------------------------------------------|
| `-n`, `--name`            | project name (required)                                                 |
| `-e`, `--env`             | environment, e.g. dev, staging, prod (required)                         |
| `-m`, `--module`          | module/component name (default `infra`)                                 |
| `-d`, `--dir`             | base directory to scaffold into (default `.`)                           |
| `--endpoint`              | API endpoint for `backend.hcl`; falls back to `KH_ENDPOINT`, then `https://api.keyharbour.test` |
| `--backend`               | `http` (default) or `cloud`                                             |
| `--tfc-org`               | Terraform Cloud organization; falls back to `TF_CLOUD_ORGANIZATION`     |
| `--tfc-workspace`         | Terraform Cloud workspace; falls back to `TF_WORKSPACE`, then `<name>-<module>-<env>` |
| `-f`, `--force`           | overwrite existing files                                                |
| `--org`, `--kh-project`   | accepted, but not written into any generated file                       |

On success it prints `Scaffolded Terraform project at <path>` and exits with 0;
on an error it prints `Error: ...` to standard error and exits with 1. Run
`kh --help` for the full list.

### `kh-receiver`

`kh-receiver` starts a simple HTTP receiver for Terraform state. By default it
listens on port 8080 on all addresses and stores files under `./data`:

```
kh-receiver
kh-receiver --host 127.0.0.1 --port 9000 --data-dir /tmp/states
```

It serves these endpoints:

| Method | Path                                      | Effect                                          |
|--------|-------------------------------------------|-------------------------------------------------|
| PUT    | `/states/{module}/{workspace}.tfstate`    | stores `{data-dir}/{module}/{workspace}.tfstate` |
| GET    | `/states/{module}/{workspace}.tfstate`    | returns the stored file, or 404                 |
| POST   | `/states/{module}/{workspace}/lock`       | creates `{data-dir}/{module}/{workspace}.lock`  |
| POST   | `/states/{module}/{workspace}/unlock`     | removes the lock file                           |

A PUT may carry an `X-Checksum-Sha256` header; when it does not match the
SHA-256 of the body the upload is refused with `409 Conflict`. On success the
computed checksum is echoed back in the same header and in a JSON body with
`url`, `size` and `checksum`. A POST to a `.tfstate` path is answered with
`405`. From Python, `khstate.receiver.make_server(host, port, data_dir)`
returns a server that has not been started yet.

## Library use

Every backend returns `StateObject` records (`key`, `size`, `checksum` as
SHA-256 hex, `workspace`, `module`, `url`). The HTTP and Terraform Cloud
backends raise `BackendError` for failed requests, bad status codes and
unexpected responses; the local backend raises the usual `OSError` family.

### Local files

```python
import re
from khstate.local import LocalReader, LocalWriter

reader = LocalReader("states/", workspace_pattern=re.compile(r"^[^.]+"))
for obj in reader.list():
    data, info = reader.get(obj.key)
    print(info.workspace, info.size, info.checksum)

LocalWriter().put("backup/prod.tfstate", data, overwrite=False)
```

A directory is walked, in name order, for `*.tfstate` files; a single file
path is read directly. The workspace is the first match of the pattern in the
file name, or `default`. Writing without `overwrite` raises `FileExistsError`
when the file exists; parent directories are created and the file is written
with mode `0600`.

### HTTP endpoints

```python
from khstate.httpbackend import HTTPReader, HTTPWriter

reader = HTTPReader("http://localhost:8080/states/infra/dev.tfstate")
data, info = reader.get(reader.url)

writer = HTTPWriter(
    "http://localhost:8080/states/infra/prod.tfstate",
    headers={"X-Checksum-Sha256": info.checksum},
)
result = writer.put("", data, overwrite=True)
```

The reader always fetches its own URL. The writer PUTs to the key when one is
given, otherwise to its own URL. When the server echoes `X-Checksum-Sha256`,
the returned object carries the server's checksum. Both accept an optional
`requests` session.

### Terraform Cloud

```python
from khstate.tfc import TFCReader, TFCWriter

source = TFCReader("", "my-org", "my-workspace", "token")
for ws in source.list_all_workspaces():
    print(ws.id, ws.name)

state, info = source.get("my-workspace")

target = TFCWriter("", "my-org", "other-workspace", "token")
target.put("other-workspace", state, overwrite=True)
```

An empty host means `https://app.terraform.io`; trailing slashes are removed.
The reader downloads the workspace's current state version. The writer reads
`serial`, `lineage` and `terraform_version` from the state when present and
uploads it as a new state version.

### Scaffolding a Terraform project

```python
from khstate.scaffold import scaffold_terraform_project

target = scaffold_terraform_project(
    directory=".",
    name="myapp",
    env="dev",
    module="infra",
    endpoint="https://api.example.com",
    force=False,
    backend_type="http",
    tfc_org="",
    tfc_workspace="",
)
print("Scaffolded Terraform project at", target)
```

Files are written to `<directory>/<module>/<env>`: `versions.tf`,
`providers.tf`, `variables.tf`, `outputs.tf`, `main.tf`, `README.md` and
`.gitignore`. With `backend_type="http"` you also get `backend.tf` and
`backend.hcl`; replace `YOUR_WORKSPACE_UUID` in `backend.hcl` with your
workspace UUID. With `backend_type="cloud"` a `cloud.tf` is written instead;
the organization is required and the workspace defaults to
`<name>-<module>-<env>` (each part passed through `sanitize`). Existing files
are only replaced when `force` is true. Missing values raise
`MissingValueError`, unusable values raise `InvalidValueError`; both are
`ScaffoldError`s.

## What this package does not do

- `kh` only scaffolds projects. It has no login, configuration, listing,
  locking or state-migration commands, and the library has no client for the
  KeyHarbour service API.
- The receiver's locks are advisory files only: a PUT is not refused while a
  lock file exists, and there is no authentication.