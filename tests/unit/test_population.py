"""Unit tests for the view population engine."""

import pytest

from archviews.models import Model, ModelError, View, ViewKind
from archviews.models.views import ElementInclude, RelationshipLink
from archviews.views import ViewError, ViewPopulator


@pytest.fixture
def shop():
    """Shop system with two containers, surrounded by people and systems."""
    model = Model()
    elements = {}
    elements["customer"] = model.add_person("Customer")
    elements["staff"] = model.add_person("Staff")
    elements["shop"] = model.add_software_system("Shop")
    elements["web"] = model.add_container(elements["shop"], "Web")
    elements["api"] = model.add_component(elements["web"], "API")
    elements["db"] = model.add_container(elements["shop"], "Database")
    elements["payments"] = model.add_software_system("Payments", tags=["External"])
    elements["mail"] = model.add_software_system("Mail")
    elements["archive"] = model.add_software_system("Archive")

    model.uses(elements["customer"], elements["shop"], "Buys")
    model.uses(elements["customer"], elements["web"], "Browses")
    model.uses(elements["web"], elements["db"], "Reads")
    model.uses(elements["api"], elements["payments"], "Charges")
    model.uses(elements["payments"], elements["mail"], "Sends receipts")
    model.uses(elements["staff"], elements["payments"], "Reconciles")
    model.uses(elements["customer"], elements["payments"], "Pays")
    model.finalize()
    return model, elements


def names(view):
    return [e.name for e in view.elements()]


def descriptions(view):
    return sorted(r.description for r in view.relationships())


def assert_closed(model, view):
    """Every relationship between two elements of the view is in the view."""
    present = {id(e) for e in view.elements()}
    for relationship in model.relationships():
        if id(relationship.source) in present and id(relationship.destination) in present:
            assert view.has_relationship(relationship), relationship


class TestPopulator:
    """Test populator setup and scope checks."""

    def test_requires_finalized_model(self):
        model = Model()
        model.add_person("Customer")
        with pytest.raises(ModelError, match="finalized"):
            ViewPopulator(model)

    def test_component_view_requires_container(self, shop):
        model, _ = shop
        view = View(key="components", kind=ViewKind.COMPONENT, add_all=True)
        with pytest.raises(ViewError, match="requires a container"):
            ViewPopulator(model).populate(view)

    def test_kind_not_allowed(self, shop):
        """Test containers cannot be added to a landscape view."""
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE,
                    includes=[ElementInclude(element=e["web"])])
        with pytest.raises(ViewError, match="cannot be added"):
            ViewPopulator(model).populate(view)

    def test_dynamic_view_rejects_add_all(self, shop):
        model, e = shop
        view = View(key="flow", kind=ViewKind.DYNAMIC, software_system=e["shop"], add_all=True)
        with pytest.raises(ViewError, match="AddAll"):
            ViewPopulator(model).populate(view)


class TestAddAll:
    """Test AddAll per view kind."""

    def test_landscape(self, shop):
        model, _ = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True)
        ViewPopulator(model).populate(view)

        assert names(view) == ["Customer", "Staff", "Shop", "Payments", "Mail", "Archive"]
        assert descriptions(view) == ["Buys", "Charges", "Pays", "Reconciles", "Sends receipts"]
        assert_closed(model, view)

    def test_add_all_is_idempotent(self, shop):
        """Test applying AddAll again changes nothing."""
        model, _ = shop
        populator = ViewPopulator(model)
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True)
        populator.populate(view)
        elements = list(view.element_views)
        relationships = list(view.relationship_views)

        populator.add_all(view)
        assert view.element_views == elements
        assert view.relationship_views == relationships

    def test_populate_twice_gives_same_content(self, shop):
        model, _ = shop
        populator = ViewPopulator(model)
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True)
        first = [e.id for e in populator.populate(view).elements()]
        second = [e.id for e in populator.populate(view).elements()]
        assert first == second

    def test_container_view_excludes_scope_system(self, shop):
        model, e = shop
        view = View(key="containers", kind=ViewKind.CONTAINER, software_system=e["shop"],
                    add_all=True)
        ViewPopulator(model).populate(view)

        assert "Shop" not in names(view)
        assert {"Web", "Database", "Customer", "Payments"} <= set(names(view))
        assert "Buys" not in descriptions(view)
        assert "Browses" in descriptions(view)
        assert_closed(model, view)


class TestAddDefault:
    """Test the default element sets."""

    def test_system_context(self, shop):
        """Test a context view shows the system and its direct neighbors."""
        model, e = shop
        view = View(key="context", kind=ViewKind.SYSTEM_CONTEXT, software_system=e["shop"],
                    add_default=True)
        ViewPopulator(model).populate(view)

        assert names(view) == ["Shop", "Customer", "Payments"]
        assert descriptions(view) == ["Buys", "Charges", "Pays"]

    def test_component(self, shop):
        model, e = shop
        view = View(key="components", kind=ViewKind.COMPONENT, container=e["web"],
                    software_system=e["shop"], add_default=True)
        ViewPopulator(model).populate(view)

        assert names(view) == ["API", "Payments"]
        assert descriptions(view) == ["Charges"]


class TestNeighborsAndInfluencers:
    """Test neighbor and influencer expansion."""

    def test_add_neighbors_excludes_element(self, shop):
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE,
                    add_neighbors=[e["payments"]])
        ViewPopulator(model).populate(view)

        assert names(view) == ["Mail", "Staff", "Customer", "Shop"]

    def test_influencers_prune_external_relationships(self, shop):
        """Test relationships between two influencers are dropped and stay dropped."""
        model, e = shop
        view = View(key="containers", kind=ViewKind.CONTAINER, software_system=e["shop"],
                    includes=[ElementInclude(element=e["web"])], add_influencers=True)
        ViewPopulator(model).populate(view)

        assert set(names(view)) == {"Web", "Customer", "Payments"}
        assert descriptions(view) == ["Browses", "Charges"]
        pays = model.find_relationships(e["customer"], e["payments"], "Pays")[0]
        assert pays.id in view.suppressed

    def test_influencers_only_in_container_views(self, shop):
        model, _ = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_influencers=True)
        with pytest.raises(ViewError, match="AddInfluencers"):
            ViewPopulator(model).populate(view)


class TestRemovals:
    """Test removal directives."""

    def test_exclude_cascades_to_relationships(self, shop):
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    exclude=[e["mail"]])
        ViewPopulator(model).populate(view)

        assert "Mail" not in names(view)
        assert "Sends receipts" not in descriptions(view)

    def test_remove_tagged(self, shop):
        model, _ = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    exclude_tags=["External"])
        ViewPopulator(model).populate(view)

        assert "Payments" not in names(view)
        assert descriptions(view) == ["Buys"]

    @pytest.mark.parametrize("tag", ["Async", "Relationship"])
    def test_remove_tagged_keeps_tagged_relationships(self, tag):
        """Test only tagged elements are removed, never relationships by their own tags."""
        model = Model()
        a = model.add_software_system("A")
        b = model.add_software_system("B")
        relationship = model.uses(a, b, "Publishes", tags=["Async"])
        model.finalize()
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    exclude_tags=[tag])
        ViewPopulator(model).populate(view)

        assert names(view) == ["A", "B"]
        assert view.has_relationship(relationship)
        assert_closed(model, view)

    def test_unlink_is_not_undone_by_completion(self, shop):
        """Test an unlinked relationship stays out after later additions."""
        model, e = shop
        populator = ViewPopulator(model)
        buys = model.resolve_relationship(e["customer"], e["shop"], "Buys")
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    unlinks=[buys])
        populator.populate(view)

        assert not view.has_relationship(buys)
        populator.add_elements(view, e["customer"])
        populator.complete_relationships(view)
        assert not view.has_relationship(buys)

    def test_remove_unreachable(self, shop):
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    remove_unreachable=[e["customer"]])
        ViewPopulator(model).populate(view)

        assert "Archive" not in names(view)
        assert "Mail" in names(view)

    def test_remove_unreachable_from_removed_root(self, shop):
        """Test nothing is removed when the root is no longer in the view."""
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    exclude=[e["customer"]], remove_unreachable=[e["customer"]])
        ViewPopulator(model).populate(view)

        assert names(view) == ["Staff", "Shop", "Payments", "Mail", "Archive"]

    def test_remove_unrelated(self, shop):
        model, _ = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, add_all=True,
                    remove_unrelated=True)
        ViewPopulator(model).populate(view)

        assert "Archive" not in names(view)
        assert len(view.element_views) == 5


class TestExplicitContent:
    """Test explicit includes and links."""

    def test_include_position(self, shop):
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE,
                    includes=[ElementInclude(element=e["shop"], x=100, y=200)])
        ViewPopulator(model).populate(view)

        element_view = view.element_view(e["shop"].id)
        assert (element_view.x, element_view.y) == (100, 200)

    def test_no_relationship_element(self, shop):
        """Test elements shown without relationships only keep explicit links."""
        model, e = shop
        view = View(key="landscape", kind=ViewKind.SYSTEM_LANDSCAPE, includes=[
            ElementInclude(element=e["customer"], no_relationship=True),
            ElementInclude(element=e["shop"]),
            ElementInclude(element=e["payments"]),
        ])
        ViewPopulator(model).populate(view)
        assert descriptions(view) == ["Charges"]

        pays = model.resolve_relationship(e["customer"], e["payments"], "Pays")
        view.links = [RelationshipLink(relationship=pays)]
        ViewPopulator(model).populate(view)
        assert descriptions(view) == ["Charges", "Pays"]

    def test_link_adds_endpoints(self, shop):
        model, e = shop
        reads = model.resolve_relationship(e["web"], e["db"], "Reads")
        view = View(key="containers", kind=ViewKind.CONTAINER, software_system=e["shop"],
                    links=[RelationshipLink(relationship=reads, description="Queries")])
        ViewPopulator(model).populate(view)

        assert names(view) == ["Web", "Database"]
        assert view.relationship_views[0].description == "Queries"

    def test_dynamic_view_orders_links(self, shop):
        """Test dynamic views number links and repeat relationships."""
        model, e = shop
        browses = model.resolve_relationship(e["customer"], e["web"], "Browses")
        reads = model.resolve_relationship(e["web"], e["db"], "Reads")
        view = View(key="flow", kind=ViewKind.DYNAMIC, software_system=e["shop"], links=[
            RelationshipLink(relationship=browses),
            RelationshipLink(relationship=reads),
            RelationshipLink(relationship=browses, description="Confirms"),
        ])
        ViewPopulator(model).populate(view)

        assert [rv.order for rv in view.relationship_views] == ["1", "2", "3"]
        assert [rv.description for rv in view.relationship_views] == ["", "", "Confirms"]


class TestDeploymentViews:
    """Test deployment view population."""

    @pytest.fixture
    def deployment(self):
        model = Model()
        shop = model.add_software_system("Shop")
        web = model.add_container(shop, "Web")
        db = model.add_container(shop, "Database")
        payments = model.add_software_system("Payments")
        gateway = model.add_container(payments, "Gateway")

        edge = model.add_deployment_node("Edge", environment="Live")
        lb = model.add_infrastructure_node(edge, "LB")
        web_instance = model.add_container_instance(edge, web)
        gateway_instance = model.add_container_instance(edge, gateway)
        data = model.add_deployment_node("Data", environment="Live")
        db_instance = model.add_container_instance(data, db)
        model.add_deployment_node("Laptop", environment="Dev")

        model.uses(lb, web_instance, "Forwards")
        model.uses(web_instance, db_instance, "Reads")
        model.finalize()
        return model, shop

    def test_environment_filter(self, deployment):
        model, shop = deployment
        view = View(key="live", kind=ViewKind.DEPLOYMENT, software_system=shop,
                    environment="Live", add_all=True)
        ViewPopulator(model).populate(view)

        assert "Laptop" not in names(view)
        assert {"Edge", "LB", "Web", "Data", "Database"} <= set(names(view))

    def test_instances_of_other_systems_filtered(self, deployment):
        model, shop = deployment
        view = View(key="live", kind=ViewKind.DEPLOYMENT, software_system=shop,
                    environment="Live", add_all=True)
        ViewPopulator(model).populate(view)

        assert "Gateway" not in names(view)

    def test_relationships_stay_inside_deployment_islands(self, deployment):
        """Test relationships between different top-level nodes are not completed."""
        model, shop = deployment
        view = View(key="live", kind=ViewKind.DEPLOYMENT, software_system=shop,
                    environment="Live", add_all=True)
        ViewPopulator(model).populate(view)

        assert descriptions(view) == ["Forwards"]

    def test_link_brings_deployment_nodes(self, deployment):
        """Test linked container instances appear inside their deployment nodes."""
        model, shop = deployment
        web = model.find_deployment_element("Edge/Web", "Live")
        db = model.find_deployment_element("Data/Database", "Live")
        reads = model.resolve_relationship(web, db, "Reads")
        view = View(key="live", kind=ViewKind.DEPLOYMENT, software_system=shop,
                    environment="Live", links=[RelationshipLink(relationship=reads)])
        ViewPopulator(model).populate(view)

        assert names(view) == ["Edge", "Web", "Data", "Database"]
        assert descriptions(view) == ["Reads"]
