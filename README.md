# integdev

Developer tooling for a repository of integration packages. It is a library:
import the pieces you need from Python.

## What is inside

### `integdev.citools` — CI compatibility checks

Read a package `manifest.yml` and decide whether it fits a given stack.

```python
from integdev.citools.kibana import is_package_supported_in_stack_version
from integdev.citools.logsdb import is_logsdb_supported_in_package
from integdev.citools.subscription import is_subscription_compatible

is_package_supported_in_stack_version("8.18.0-SNAPSHOT", "packages/nginx/manifest.yml")
is_logsdb_supported_in_package("packages/nginx/manifest.yml")
is_subscription_compatible("basic", "packages/nginx/manifest.yml")
```

- `integdev.citools.manifest.read_package_manifest` reads the name, licence,
  Kibana version constraint and required subscription of a manifest. Dotted
  keys such as `kibana.version: "^8.0.0"` are read the same way as nested
  mappings. Unreadable manifests raise `ManifestError`.
- `integdev.citools.semver` provides `parse_version`, `parse_constraint` and
  `Constraints.check`, with the usual `^`, `~`, `>`, `>=`, `<`, `<=`, `!=`,
  `x`/`*` wildcards, hyphen ranges, comma-separated terms and `||`
  alternatives.
- A `-SNAPSHOT` suffix on the stack version is ignored. A package without a
  Kibana constraint is supported everywhere.
- `package_subscription` falls back from `conditions.elastic.subscription` to
  `license` and then to `basic`. A `trial` stack accepts every package, a
  `basic` stack only `basic` ones; any other stack subscription raises
  `ValueError`.

### `integdev.codeowners` — CODEOWNERS validation

```python
from integdev.codeowners.codeowners import check, package_owners

check()  # validates .github/CODEOWNERS against ./packages
package_owners("aws", "cloudtrail", ".github/CODEOWNERS")
```

Every package must be owned in CODEOWNERS by the team named under
`owner.github` in its manifest. Packages that give any data stream its own
rule must give every data stream exactly one owner. Path-only rules are
accepted only when they cannot remove owners of earlier rules. Problems raise
`CodeownersError`. `read_github_owners` and `validate_packages` expose the
individual steps.

### `integdev.coverage` — merging generic coverage reports

```python
from integdev.coverage.coverage import merge_generic_coverage_files

merge_generic_coverage_files(["a.xml", "b.xml"], "merged.xml")
```

Reports are merged in the order given. A line present in several reports is
kept once and counts as covered if any report covers it. `read_generic_coverage`
and `GenericCoverage.to_bytes` read and write single reports.

### `integdev.importbeats` — helpers for converting beats modules

Building blocks for turning beats modules into integration packages:

- `fields` — loading field definitions, filtering migrated aliases and ECS
  fields, and the base fields of every data stream.
- `elasticsearch` — reading a data stream's ingest pipelines, naming them and
  replacing unsupported template structures.
- `kibana_objects` — converting saved objects: encoding and decoding embedded
  JSON, rewriting `event.module` filters and queries, renaming object IDs.
- `kibana_content` — collecting a module's Kibana files; full dashboard
  exports are sent to a Kibana instance through `KibanaMigrator` (an HTTP POST
  to its dashboard import API) before conversion.
- `variables`, `variables_compact` — stream variables from manifests and
  sample configurations, and moving shared ones up to the input.
- `policy_templates` — policy template titles, descriptions and inputs.
- `images`, `svg` — images referenced from AsciiDoc docs, their sizes and
  media types.
- `docs` — Markdown tables of exported fields.
- `agent` — Handlebars stream templates for metric streams.
- `registry` — manifest data classes, default conditions and changelogs.
- `mapstr`, `textutil` — dotted-key access to nested mappings and small string
  helpers.

```python
from integdev.importbeats.kibana_objects import update_object_id

update_object_id("foo-ecs", "bar")  # "bar-foo"
```

## What it does not do

There is no command-line program. The package offers no driver that walks a
beats checkout and writes finished packages to disk, and it does not turn log
input configuration templates into stream templates; only the pieces listed
above are provided, to be combined from Python.

## Requirements

Python 3.10 or later, with PyYAML and Pillow.