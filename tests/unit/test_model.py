"""Unit tests for the model builder, registry and element types."""

import pytest

from archviews.config import IdStrategy
from archviews.models import (
    ElementKind,
    Model,
    ModelError,
    Registry,
    RelationshipResolutionError,
)
from archviews.models.elements import Person, split_tags


@pytest.fixture
def shop():
    """A small model: customer, shop system with containers and a payment system."""
    model = Model(add_implied_relationships=False)
    customer = model.add_person("Customer")
    shop = model.add_software_system("Shop")
    web = model.add_container(shop, "Web", technology="Python")
    db = model.add_container(shop, "Database")
    api = model.add_component(web, "API")
    payments = model.add_software_system("Payments", tags=["External"])
    model.uses(customer, web, "Browses")
    model.uses(web, db, "Reads")
    model.uses(web, db, "Writes")
    model.uses(api, payments, "Charges")
    return model


class TestElements:
    """Test element data types."""

    def test_default_tags(self):
        """Test every element carries its kind tags first."""
        person = Person(name="Customer", tags=["VIP"])
        assert person.tags == ["Element", "Person", "VIP"]
        assert person.tag_string == "Element,Person,VIP"

    def test_merge_tags_splits_and_deduplicates(self):
        """Test comma-joined tag strings are split and trimmed."""
        person = Person(name="Customer")
        person.merge_tags("A, B", "B,C")
        assert person.tags == ["Element", "Person", "A", "B", "C"]
        assert person.has_tag(" A ")

    def test_split_tags_ignores_empty(self):
        assert split_tags("a,,b, ", "a") == ["a", "b"]

    def test_paths(self, shop):
        """Test name paths follow parent links."""
        api = shop.find_element("Shop/Web/API")
        assert api.path == "Shop/Web/API"
        assert api.system.name == "Shop"
        assert api.parent.name == "Web"

    def test_identity_semantics(self):
        """Test elements with equal names stay distinct."""
        a = Person(name="Same")
        b = Person(name="Same")
        assert a != b
        assert len({a, b}) == 2


class TestRegistry:
    """Test ID minting and lookups."""

    def test_random_ids_are_unique(self, shop):
        ids = [e.id for e in shop.elements()] + [r.id for r in shop.relationships()]
        assert len(ids) == len(set(ids))
        assert all(ids)

    def test_random_ids_differ_between_builds(self):
        """Test two builds of the same design get different IDs."""
        first = Model()
        second = Model()
        assert first.add_person("Customer").id != second.add_person("Customer").id

    def test_content_ids_are_stable_between_builds(self):
        """Test content-addressed IDs repeat for the same design."""
        first = Model(id_strategy=IdStrategy.CONTENT)
        second = Model(id_strategy="content")
        a = first.add_software_system("Shop")
        b = second.add_software_system("Shop")
        assert a.id == b.id
        assert first.add_container(a, "Web").id == second.add_container(b, "Web").id

    def test_content_id_collision_gets_suffix(self):
        """Test duplicate monikers still get distinct IDs."""
        model = Model(id_strategy=IdStrategy.CONTENT)
        first = model.add_person("Customer")
        second = model.add_person("Customer")
        assert second.id == f"{first.id}-2"

    def test_explicit_id_kept(self):
        model = Model()
        person = model.add_person("Customer", id="p1")
        assert person.id == "p1"
        assert model.element("p1") is person

    def test_duplicate_explicit_id_rejected(self):
        model = Model()
        model.add_person("A", id="x")
        with pytest.raises(ModelError, match="duplicate ID"):
            model.add_person("B", id="x")

    def test_iteration_in_registration_order(self, shop):
        """Test scans follow registration order, not ID order."""
        names = [e.name for e in shop.registry.elements()]
        assert names == ["Customer", "Shop", "Web", "Database", "API", "Payments"]

    def test_lookup_by_kind(self, shop):
        relationship = shop.relationships()[0]
        registry: Registry = shop.registry
        assert registry.relationship(relationship.id) is relationship
        assert registry.element(relationship.id) is None
        assert relationship.id in registry


class TestModelBuilder:
    """Test builder ordering rules and finalization."""

    def test_relationship_requires_registered_endpoints(self):
        """Test relationships cannot reference elements of another build."""
        model = Model()
        other = Model()
        customer = model.add_person("Customer")
        stranger = other.add_software_system("Elsewhere")
        with pytest.raises(ModelError, match="not registered"):
            model.uses(customer, stranger, "Uses")

    def test_finalized_model_is_frozen(self, shop):
        shop.finalize()
        assert shop.finalized
        with pytest.raises(ModelError, match="finalized"):
            shop.add_person("Late")

    def test_finalize_is_idempotent(self, shop):
        shop.finalize()
        count = len(shop.relationships())
        shop.finalize()
        assert len(shop.relationships()) == count

    def test_implied_relationships(self):
        """Test component relationships are replicated onto parents."""
        model = Model()
        customer = model.add_person("Customer")
        shop = model.add_software_system("Shop")
        web = model.add_container(shop, "Web")
        api = model.add_component(web, "API")
        payments = model.add_software_system("Payments")
        gateway = model.add_container(payments, "Gateway")
        model.uses(api, gateway, "Charges")
        model.uses(customer, web, "Browses")
        model.finalize()

        pairs = {(r.source.name, r.destination.name) for r in model.relationships()}
        assert ("Web", "Gateway") in pairs
        assert ("Web", "Payments") in pairs
        assert ("Shop", "Gateway") in pairs
        assert ("Shop", "Payments") in pairs
        assert ("API", "Payments") not in pairs
        # Person relationships are not replicated
        assert ("Customer", "Shop") not in pairs

    def test_implied_relationships_skip_existing_description(self):
        """Test an existing relationship with the same description is reused."""
        model = Model()
        shop = model.add_software_system("Shop")
        web = model.add_container(shop, "Web")
        payments = model.add_software_system("Payments")
        model.uses(shop, payments, "Charges")
        model.uses(web, payments, "Charges")
        model.finalize()

        assert len(model.find_relationships(shop, payments)) == 1

    def test_implied_relationships_skip_internal(self):
        """Test no self or parent relationships are implied."""
        model = Model()
        shop = model.add_software_system("Shop")
        web = model.add_container(shop, "Web")
        db = model.add_container(shop, "Database")
        model.uses(web, db, "Reads")
        model.finalize()

        assert model.find_relationships(shop, shop) == []
        assert model.find_relationships(shop, db) == []
        assert len(model.relationships()) == 1


class TestLookups:
    """Test element and relationship lookups."""

    def test_find_element_paths(self, shop):
        assert shop.find_element("Customer").kind == ElementKind.PERSON
        assert shop.find_element("Shop/Database").kind == ElementKind.CONTAINER
        assert shop.find_element("Shop/Web/API").kind == ElementKind.COMPONENT
        assert shop.find_element("Shop/Missing") is None
        assert shop.find_element("Nobody") is None

    def test_find_element_in_scope(self, shop):
        """Test bare names resolve against the scope's children first."""
        system = shop.find_element("Shop")
        assert shop.find_element("Database", scope=system).path == "Shop/Database"

    def test_resolve_relationship_needs_description(self, shop):
        """Test ambiguous references are reported, not guessed."""
        web = shop.find_element("Shop/Web")
        db = shop.find_element("Shop/Database")
        with pytest.raises(RelationshipResolutionError, match="2 relationships"):
            shop.resolve_relationship(web, db)
        assert shop.resolve_relationship(web, db, "Writes").description == "Writes"

    def test_resolve_relationship_missing(self, shop):
        customer = shop.find_element("Customer")
        db = shop.find_element("Shop/Database")
        with pytest.raises(RelationshipResolutionError, match="no relationship"):
            shop.resolve_relationship(customer, db)

    def test_find_deployment_element(self):
        """Test deployment paths resolve nodes, infrastructure and instances."""
        model = Model()
        shop = model.add_software_system("Shop")
        web = model.add_container(shop, "Web")
        server = model.add_deployment_node("Server", environment="Live")
        rack = model.add_deployment_node("Rack", parent=server)
        lb = model.add_infrastructure_node(server, "LB")
        first = model.add_container_instance(rack, web)
        second = model.add_container_instance(rack, web, instance_id=2)

        assert rack.environment == "Live"
        assert model.find_deployment_element("Server") is server
        assert model.find_deployment_element("Server/Rack") is rack
        assert model.find_deployment_element("Server/LB") is lb
        assert model.find_deployment_element("Server/Rack/Web") is first
        assert model.find_deployment_element("Server/Rack/Web/2") is second
        assert model.find_deployment_element("Server", environment="Dev") is None
        assert rack.root() is server

    def test_find_deployment_element_without_environment(self):
        """Test nodes with no environment are found from any environment."""
        model = Model()
        shared = model.add_deployment_node("DNS")
        live = model.add_deployment_node("Server", environment="Live")
        model.add_deployment_node("Server", environment="Dev")

        assert model.find_deployment_element("DNS", "Live") is shared
        assert model.find_deployment_element("Server", "Live") is live
        assert model.find_deployment_element("Server", "Test") is None

    def test_absolute_path_skips_scope(self):
        """Test a leading slash names a top-level system even when a child shares its name."""
        model = Model()
        shop = model.add_software_system("Shop")
        web = model.add_container(shop, "Web")
        local = model.add_container(shop, "Payments")
        payments = model.add_software_system("Payments")

        assert model.find_element("Payments", scope=web) is local
        assert model.find_element("/Payments", scope=web) is payments
        assert model.find_element("/Shop/Web") is web
