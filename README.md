# kratix-cli

Command-line tools that edit Kratix Promises on disk, along with small
programs that run as Promise pipeline stages. The package also has library
functions that turn Helm chart values and Terraform module variables into
CRD schemas.

## Installation

```
pip install kratix-cli
```

## The `kratix` command

Every `update` subcommand reads the Promise from a directory. Pass the
directory with `-d/--dir`; it defaults to the current one. Errors are
printed as `Error: ...`, and the command then exits with status 1.
`kratix --version` prints the version.

### `kratix update api`

```
# add a string property
kratix update api --property region:string

# add an integer 'port' property nested inside a 'service' object
kratix update api --property service.port:integer

# remove a property
kratix update api --property region-

# change the group and kind
kratix update api --group myorg.com --kind Database

# change the version and the plural form
kratix update api --version v1beta3 --plural mydbs
```

If the directory has an `api.yaml`, the CRD is read from that file and
written back to it. Otherwise the CRD is taken from `spec.api` in
`promise.yaml`.

- A property is given as `NAME:TYPE`. The valid types are `string`,
  `number`, `integer`, `object` and `boolean`. Separate nested names with
  `.`. Any missing parent is created as an object. If a parent exists but
  is not an object, the command reports an error.
- `NAME-` removes a property.
- `--kind` sets the kind and also its lower-case singular name.
  `--version` renames the first version. `--group` and `--plural` set the
  group and the plural name. The CRD's `metadata.name` becomes
  `<plural>.<group>`. When any of these four options is given,
  `apiVersion` and `kind` in `example-resource.yaml` are rewritten to
  match. That file must exist.

### `kratix update dependencies PATH`

```
# store every YAML file under a directory as Promise dependencies
kratix update dependencies path/to/dir/

# store the documents of a single file
kratix update dependencies path/to/file.yaml
```

PATH can be a single file. It can also be a directory: all `.yaml` and
`.yml` files in it and in its subdirectories are read, in name order.
Every document must have a `kind`. Any resource without a namespace is
placed in `default`.

The directory may have a `promise.yaml` and no `dependencies.yaml`. In
that case the dependencies replace `spec.dependencies` in `promise.yaml`.
Otherwise they are written to `dependencies.yaml`.

### `kratix update destination-selector`

```
# add or change a selector label
kratix update destination-selector env=dev

# remove a selector label
kratix update destination-selector zone-
```

The labels are kept in the `matchLabels` of the first destination
selector in `promise.yaml`. That selector is created if it is missing.

## Pipeline stages

Every stage reads the request object from `KRATIX_INPUT_FILE`, which
defaults to `/kratix/input/object.yaml`. A stage prints any error to
standard error and exits with a non-zero status.

`kratix-operator-stage` and `kratix-crossplane-stage` build an object of
a new group, version and kind. They copy the request's name, labels,
annotations and spec into it and put it in the `default` namespace. A
missing spec is written as `{}`. The object is written to
`KRATIX_OUTPUT_FILE`, which defaults to `/kratix/output/object.yaml`. The
target type comes from these variables, and all of them must be set:

| stage                     | variables                                              |
|---------------------------|--------------------------------------------------------|
| `kratix-operator-stage`   | `OPERATOR_GROUP`, `OPERATOR_VERSION`, `OPERATOR_KIND`  |
| `kratix-crossplane-stage` | `XRD_GROUP`, `XRD_VERSION`, `XRD_KIND`                 |

```
OPERATOR_GROUP=example.com OPERATOR_VERSION=v1 OPERATOR_KIND=Example \
KRATIX_INPUT_FILE=object.yaml KRATIX_OUTPUT_FILE=out.yaml \
kratix-operator-stage
```

`kratix-terraform-stage` turns the request into a Terraform JSON module
call. The call is written to `<kind>_<namespace>_<name>.tf.json` (in
lower case) inside `KRATIX_OUTPUT_DIR`, which defaults to
`/kratix/output`. The module source is
`git::$MODULE_SOURCE?ref=$MODULE_VERSION`. The spec fields become module
arguments, but null values and empty lists are left out. The request must
have a `kind`, `metadata.name` and `metadata.namespace`.

```
MODULE_SOURCE=example.com/modules/bucket MODULE_VERSION=1.0.0 \
KRATIX_INPUT_FILE=object.yaml KRATIX_OUTPUT_DIR=out \
kratix-terraform-stage
```

## Library use

`helm_values_to_schema` turns Helm chart values into an OpenAPI object
schema:

```python
from kratix_cli.helm_values_schema import helm_values_to_schema

schema = helm_values_to_schema({"replicaCount": 1, "service": {"port": 80}})
# schema["properties"]["replicaCount"] == {"type": "integer"}
```

`get_variables_from_module` fetches a Terraform module and reads the
`variable` blocks in its `variables.tf`. The module can come from git
(which needs the `git` executable), from an HTTP archive, or from a local
directory. `variables_to_crd_spec_schema` then turns those variables into
a CRD spec schema. It also returns a warning for each variable it had to
skip:

```python
from kratix_cli.terraform_module import get_variables_from_module
from kratix_cli.vars_to_crd import variables_to_crd_spec_schema

variables = get_variables_from_module("git::example.com/modules/bucket?ref=v1.0.0")
schema, warnings = variables_to_crd_spec_schema(variables)
```

`kratix_cli.layout.parse_container_cmd_args` splits a
`LIFECYCLE/ACTION/PIPELINE-NAME` path into its three parts.

## What is not included

The `kratix` command has only the `update` subcommands described above.
It cannot create a new Promise: there is no `init` command, and none of
the `promise.yaml`, `api.yaml`, `example-resource.yaml` or `workflows/`
files are generated. It cannot add containers to workflows, and it cannot
package dependencies into a workflow image. It talks to no cluster.

## Running the tests

```
pip install -e ".[test]"
pytest
```