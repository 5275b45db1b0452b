"""
Unit tests for the manifest object models and the list builder.
"""
from jkube.MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from jkube.MODELS.kubernetes_resources import (
    ConfigMap,
    Deployment,
    GenericResource,
    KubernetesContainer,
    ObjectMeta,
    PodSpec,
    PodTemplateSpec,
    ReplicationController,
    Service,
    WorkloadSpec,
    resource_from_dict,
)


def deployment(name="web", containers=("app",)):
    template = PodTemplateSpec(spec=PodSpec(containers=[KubernetesContainer(name=c) for c in containers]))
    return Deployment(metadata=ObjectMeta(name=name), spec=WorkloadSpec(template=template))


class TestKubernetesResources:
    """Tests for the object models."""

    def test_kind_and_api_version_defaults(self):
        """Test typed models know their kind."""
        d = Deployment()
        assert d.kind == "Deployment"
        assert d.api_version == "apps/v1"
        assert Service().api_version == "v1"

    def test_to_dict_prunes_empty_fields(self):
        """Test unset and empty fields are left out."""
        assert Deployment(metadata=ObjectMeta(name="web")).to_dict() == {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"name": "web"},
        }

    def test_unknown_kind_keeps_fields(self):
        """Test objects without model are written back unchanged."""
        data = {"apiVersion": "example.com/v1", "kind": "Widget", "metadata": {"name": "w"}, "spec": {"size": 3}}
        resource = resource_from_dict(data)
        assert isinstance(resource, GenericResource)
        assert resource.to_dict() == data

    def test_typed_from_dict(self):
        """Test camelCase fields are parsed into the typed model."""
        resource = resource_from_dict({
            "kind": "Deployment",
            "spec": {"template": {"spec": {"containers": [{"name": "c", "imagePullPolicy": "Always"}]}}},
        })
        assert isinstance(resource, Deployment)
        assert resource.template.spec.containers[0].image_pull_policy == "Always"
        assert resource.api_version == "apps/v1"

    def test_extra_fields_survive(self):
        """Test unmodelled fields of typed objects are kept."""
        data = {"apiVersion": "v1", "kind": "Service", "metadata": {"name": "s"},
                "spec": {"ports": [{"port": 80}], "sessionAffinity": "ClientIP"}}
        assert resource_from_dict(data).to_dict() == data

    def test_ensure_template(self):
        """Test missing specs and templates are created."""
        d = Deployment()
        template = d.ensure_template()
        assert d.template is template
        rc = ReplicationController()
        rc.ensure_template()
        assert rc.spec.selector == {}


class TestKubernetesListBuilder:
    """Tests for KubernetesListBuilder."""

    def test_find_and_has_kind(self):
        """Test lookups by kind and name."""
        builder = KubernetesListBuilder([Service(metadata=ObjectMeta(name="a")), deployment("b")])
        assert builder.has_kind("Deployment", "Job")
        assert not builder.has_kind("Job")
        assert builder.find("Service").name == "a"
        assert builder.find("Deployment", "b").name == "b"
        assert builder.find("Deployment", "c") is None

    def test_accept_top_level_kind(self):
        """Test visiting objects of one kind."""
        builder = KubernetesListBuilder([Service(), deployment(), ConfigMap()])
        seen = []
        builder.accept(ResourceKind.CONFIG_MAP, seen.append)
        assert [type(s) for s in seen] == [ConfigMap]

    def test_accept_nested_parts(self):
        """Test containers and metadata inside templates are visited."""
        builder = KubernetesListBuilder([deployment(containers=("a", "b")), Service()])
        containers, metas = [], []
        builder.accept(ResourceKind.CONTAINER, containers.append)
        builder.accept(ResourceKind.OBJECT_META, metas.append)
        assert [c.name for c in containers] == ["a", "b"]
        assert len(metas) == 3

    def test_accept_controllers(self):
        """Test the controller kind matches all pod managing objects."""
        builder = KubernetesListBuilder([deployment(), ReplicationController(), Service()])
        seen = []
        builder.accept(ResourceKind.CONTROLLER, seen.append)
        assert [s.kind for s in seen] == ["Deployment", "ReplicationController"]

    def test_visiting_is_snapshot_based(self):
        """Test objects added while visiting are not visited."""
        builder = KubernetesListBuilder([Service()])
        visited = []

        def visitor(service):
            visited.append(service)
            builder.add_to_items(Service())

        builder.accept(ResourceKind.SERVICE, visitor)
        assert len(visited) == 1
        assert len(builder) == 2

    def test_visit_dispatch_order(self):
        """Test the dispatch table is processed in order."""
        builder = KubernetesListBuilder([deployment(), Service()])
        order = []
        builder.visit({
            ResourceKind.SERVICE: lambda s: order.append("service"),
            ResourceKind.DEPLOYMENT: lambda d: order.append("deployment"),
        })
        assert order == ["service", "deployment"]

    def test_build_returns_copy(self):
        """Test the built list is independent of the builder."""
        builder = KubernetesListBuilder()
        assert not builder.has_items()
        items = builder.build()
        items.append(Service())
        assert len(builder) == 0
