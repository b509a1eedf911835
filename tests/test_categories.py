"""Tests for the visit category registry"""

from guidedtours.domain.categories.registry import BUILT_IN_CATEGORIES, CategoryRegistry
from guidedtours.schemas import VisitCategory


class TestCategoryRegistry:
    def test_built_ins_are_registered(self):
        registry = CategoryRegistry()
        assert registry.names() == ["STORICA", "SCIENTIFICA", "ENOGASTRONOMICA", "LABBAMBINI"]
        assert len(BUILT_IN_CATEGORIES) == 4

    def test_lookup_is_case_insensitive(self):
        registry = CategoryRegistry()
        assert registry.get("storica").name == "STORICA"
        assert registry.get(" Scientifica ").name == "SCIENTIFICA"

    def test_register_custom_category(self):
        registry = CategoryRegistry()

        assert registry.register("Fotografica", "Itinerari fotografici")
        assert not registry.register("FOTOGRAFICA")
        assert not registry.register("   ")
        assert registry.get("fotografica").description == "Itinerari fotografici"

    def test_built_ins_cannot_be_removed(self):
        registry = CategoryRegistry()
        registry.register("Fotografica")

        assert not registry.remove("STORICA")
        assert registry.remove("fotografica")
        assert registry.get("Fotografica") is None

    def test_from_name_builds_unknown_category(self):
        category = CategoryRegistry().from_name("Archeologica")
        assert category.name == "Archeologica"
        assert category.description == ""

    def test_reload_keeps_built_ins(self):
        registry = CategoryRegistry([VisitCategory(name="Vecchia")])

        registry.reload([VisitCategory(name="Nuova"), VisitCategory(name="storica", description="x")])

        assert registry.get("Vecchia") is None
        assert registry.get("Nuova") is not None
        assert registry.get("STORICA").description != "x"

    def test_resolve_skips_unknown(self):
        resolved = CategoryRegistry().resolve(["STORICA", "Ignota", "labbambini"])
        assert [c.name for c in resolved] == ["STORICA", "LABBAMBINI"]
