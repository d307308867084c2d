from pathlib import Path

import pytest

from auto_rightsize.documents import DocumentStore
from auto_rightsize.errors import QuantityParseError
from auto_rightsize.patching import apply_recommendations
from auto_rightsize.types import ContainerRecommendation, Recommendation
from auto_rightsize.yaml_utils import _load_yaml_doc


DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: shop
spec:
  replicas: 2  # keep
  template:
    spec:
      containers:
        - name: web
          image: nginx
          resources:
            limits:
              cpu: 500m
              memory: 1Gi
            requests:
              cpu: 100m
              memory: 128Mi
        - name: sidecar
          image: envoy
          resources:
            requests:
              cpu: 10m
"""


def _store(content: str = DEPLOYMENT) -> DocumentStore:
	store = DocumentStore()
	store.add_text(content, Path("/repo/apps/web.yaml"))
	return store


def _rec(label: str = "web - Overall", namespace: str = "shop", **kwargs) -> Recommendation:
	return Recommendation(
		workload_name="web",
		workload_namespace=namespace,
		per_container=(ContainerRecommendation(label=label, **kwargs),),
	)


def _container(store: DocumentStore, name: str):
	doc = next(iter(store))
	body = _load_yaml_doc(doc.raw_content)
	for container in body["spec"]["template"]["spec"]["containers"]:
		if container["name"] == name:
			return container
	raise AssertionError(name)


def test_recommendation_replaces_resource_sections() -> None:
	# Intended behavior: only recommended fields remain; empty sections are removed.
	store = _store()
	patched, warnings = apply_recommendations(store, [_rec(cpu_request="250m", mem_limit="512Mi")])

	assert (patched, warnings) == (1, [])
	web = _container(store, "web")
	assert dict(web["resources"]["requests"]) == {"cpu": "250m"}
	assert dict(web["resources"]["limits"]) == {"memory": "512Mi"}
	assert next(iter(store)).changed is True


def test_unmatched_container_and_comments_are_untouched() -> None:
	# Intended behavior: containers without a recommendation and surrounding comments survive.
	store = _store()
	apply_recommendations(store, [_rec(cpu_request="250m", mem_limit="512Mi")])

	doc = next(iter(store))
	assert "# keep" in doc.raw_content
	assert dict(_container(store, "sidecar")["resources"]["requests"]) == {"cpu": "10m"}


def test_all_empty_recommendation_clears_sections() -> None:
	# Intended behavior: a label with no recommended values leaves an empty resources map.
	store = _store()
	apply_recommendations(store, [_rec()])
	assert dict(_container(store, "web")["resources"]) == {}


def test_resources_created_when_missing() -> None:
	# Intended behavior: a container without resources gets a new block.
	store = _store(DEPLOYMENT.replace("          resources:\n            requests:\n              cpu: 10m\n", ""))
	assert "resources" not in _container(store, "sidecar")

	apply_recommendations(store, [_rec(label="sidecar - Overall", cpu_request="0.05", mem_request="64 MiB")])
	sidecar = _container(store, "sidecar")
	assert dict(sidecar["resources"]["requests"]) == {"cpu": "50m", "memory": "64Mi"}
	assert "limits" not in sidecar["resources"]


def test_null_resources_are_replaced() -> None:
	# Intended behavior: an empty resources key is replaced by the recommended block.
	store = _store(DEPLOYMENT.replace("          resources:\n            requests:\n              cpu: 10m\n", "          resources:\n"))
	assert _container(store, "sidecar")["resources"] is None

	patched, _ = apply_recommendations(store, [_rec(label="sidecar - Overall", cpu_request="250m")])
	assert patched == 1
	sidecar = _container(store, "sidecar")
	assert dict(sidecar["resources"]["requests"]) == {"cpu": "250m"}
	assert list(sidecar.keys()) == ["name", "image", "resources"]


def test_missing_deployment_is_a_warning() -> None:
	# Intended behavior: recommendations for unknown workloads warn and change nothing.
	store = _store()
	patched, warnings = apply_recommendations(store, [_rec(namespace="other", cpu_request="1")])
	assert patched == 0
	assert warnings == ["deployment template not found other/web"]
	assert next(iter(store)).changed is False


def test_identical_values_leave_document_unchanged() -> None:
	# Intended behavior: matching resources do not mark the document changed.
	store = _store()
	patched, warnings = apply_recommendations(
		store,
		[_rec(cpu_request="0.1", cpu_limit="500m", mem_request="128Mi", mem_limit="1024Mi")],
	)
	assert patched == 0
	assert warnings == ["deployment shop/web: no changes needed"]
	assert next(iter(store)).changed is False


def test_default_namespace_matches_namespaceless_manifest() -> None:
	# Intended behavior: a "default" recommendation finds a Deployment without a namespace.
	store = _store(DEPLOYMENT.replace("  namespace: shop\n", ""))
	patched, _ = apply_recommendations(store, [_rec(namespace="default", cpu_request="250m")])
	assert patched == 1


def test_invalid_quantity_aborts() -> None:
	# Intended behavior: an unparseable recommended value is fatal.
	with pytest.raises(QuantityParseError):
		apply_recommendations(_store(), [_rec(mem_limit="a lot")])


def test_change_notes_are_collected() -> None:
	# Intended behavior: callers receive one note per rewritten section.
	notes = []
	apply_recommendations(_store(), [_rec(cpu_request="250m", mem_limit="512Mi")], notes=notes)
	assert len(notes) == 2
	assert all(n.startswith("shop/web web: ") for n in notes)


def test_non_finite_quantity_aborts() -> None:
	# Intended behavior: infinite recommended values are rejected like any malformed quantity.
	with pytest.raises(QuantityParseError, match="not a finite number"):
		apply_recommendations(_store(), [_rec(cpu_request="inf")])
