# addonmeta

Tools for working with managed add-on metadata: reading `addon.yaml`
metadata and versioned image sets, combining the two, loading operator
bundles and their ClusterServiceVersions, and checking RBAC rules,
deployments and Kubernetes names for common problems.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

Installing the package provides the `mtcli` command.

Show version information:

```
mtcli version
```

Check an unpacked operator bundle directory:

```
mtcli bundle validate path/to/bundle
```

The directory must hold a `manifests/` directory and
`metadata/annotations.yaml` with the package and channels annotations;
every manifest needs an `apiVersion` and a `kind`, and one of them must be
a named `ClusterServiceVersion`. On failure the reason is printed and the
command exits with status 1.

Add `-v` / `--verbose` for debug logging:

```
mtcli -v bundle validate path/to/bundle
```

## Library use

### Metadata and image sets

An add-on directory is laid out as

```
<addon>/metadata/<env>/addon.yaml
<addon>/addonimagesets/<env>/<addon>.v<MAJOR.MINOR.PATCH>.yaml
```

`addonmeta.meta_loader.MetaLoader` reads the metadata for an environment
and, when it names an `addonImageSetVersion`, merges that image set into
it. The version argument may be a `MAJOR.MINOR.PATCH` string, `"latest"`
(the file name in the image set directory that sorts last), or empty to
use the version from the metadata. Problems are raised as
`MetaLoaderError`.

```python
from addonmeta.meta_loader import MetaLoader

meta = MetaLoader("addons/reference-addon", "stage", "latest").load()
print(meta.index_image, meta.image_set_version)
```

Image sets and metadata can be read on their own with
`AddonImageSetSpec.from_yaml` / `AddonMetadataSpec.from_yaml` from
`addonmeta.api`, and converted back with `to_dict`:

```python
from addonmeta.api import AddonImageSetSpec

with open("reference-addon.v0.0.1.yaml") as fh:
    image_set = AddonImageSetSpec.from_yaml(fh.read())

image_set.get_semver()  # "0.0.1"
```

`AddonMetadataSpec.combine_with_image_set` returns a merged copy and
leaves the original untouched.

### Bundles

`addonmeta.operator.new_bundle_from_directory` loads an unpacked bundle
into a `Bundle` (annotations, ClusterServiceVersion, package, channels,
version). `head_bundle(*bundles)` returns the one with the highest
version.

### RBAC checks

```python
from addonmeta.csvutils import (
    check_for_confidential_obj_access_at_cluster_scope,
    get_apis_owned,
    get_permissions,
    wildcard_api_group_present,
    wildcard_resource_present,
)
from addonmeta.operator import new_bundle_from_directory

csv = new_bundle_from_directory("path/to/bundle").cluster_service_version
permissions = get_permissions(csv)
owned = get_apis_owned(csv)

wildcard_api_group_present(permissions)
wildcard_resource_present(permissions, owned)
check_for_confidential_obj_access_at_cluster_scope(permissions)
```

Rules can also be selected directly with `RuleFilter` and the filters in
`addonmeta.rbac` (`APIGroupFilter`, `ResourcesFilter`,
`ResourceNamesFilter`, `VerbsFilter`, `NonResourceURLsFilter`), combined
with the `Operator` and `PermissionType` enums, through
`CSVPermissions.filter_rules`.

### Deployment linting and name checks

```python
from addonmeta.kube import DeploymentLinter, is_valid_k8s_namespace_name

result = DeploymentLinter().lint(deployment)  # a decoded Deployment mapping
if not result.success:
    print("\n".join(result.reasons))

is_valid_k8s_namespace_name("Bad_Name")  # returns a failure message, "" when valid
```

By default the linter requires liveness and readiness probes plus CPU and
memory requests and limits on every container. The
`are_valid_k8s_*_names` functions check several names at once and return
only the failure messages.

### Extraction and caching

`addonmeta.extractor.MainExtractor` lists the bundle images of an index
image through an `IndexExtractor` and extracts each bundle, in parallel,
through a `BundleExtractor`. Index images without a tag are skipped.

`addonmeta.index.DefaultIndexExtractor` takes a lister callable
`(index_image, package_name) -> iterable of ListedBundle` (an empty
package name means all packages) and caches results per package.
`DefaultBundleExtractor` takes an unpacker callable
`(bundle_image, directory, timeout)` that writes the bundle's content into
the directory; it then validates, loads and caches the bundle. Caches
live in `addonmeta.caches` on top of `addonmeta.store.ThreadSafeStore`.

### Tables

`addonmeta.cli.Table` renders plain-text tables whose cells are `Field`
values, optionally coloured with `FieldColor` when writing to a terminal.

## What this package does not do

It does not talk to container registries: nothing here pulls index or
bundle images or lists their contents. To extract from real images you
pass in the lister and unpacker callables yourself. `mtcli` offers only
the `version` and `bundle validate` commands; there are no commands for
listing bundles of an index image or for running add-on validators.