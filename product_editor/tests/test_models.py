import pytest

from product_editor.models import (
    CatalogDataError,
    Category,
    Draft,
    FeatureType,
    FeatureVariant,
    Label,
    Option,
    Standard,
)
from test_support import CATEGORIES, COLOR_FEATURE, STANDARDS, WEIGHT_FEATURE, require


class TestReferenceModels:
    def test_category_tree_from_dict(self):
        category = Category.from_dict(CATEGORIES[0])

        require(category.title == "Apparel", 'Expected category title')
        require([s.id for s in category.subcategories] == [7, 8], 'Expected subcategory ids in order')
        require(category.get_subcategory(8).title == "Boots", 'Expected subcategory lookup')
        require(category.get_subcategory(99) is None, 'Expected None for unknown subcategory')

    def test_feature_variants(self):
        color = FeatureType.from_dict(COLOR_FEATURE)
        weight = FeatureType.from_dict(WEIGHT_FEATURE)

        require(color.variant is FeatureVariant.SELECT, 'Expected select variant')
        require(color.options() == [Option(label="Red", value=10)], 'Expected value options')
        require(weight.variant is FeatureVariant.NONE, 'Expected plain numeric variant')
        require(weight.extra == "kg", 'Expected unit label')
        require(not weight.is_selectable, 'Numeric feature must not be selectable')

    def test_unknown_variant_falls_back_to_numeric(self):
        feature = FeatureType.from_dict({"id": 3, "title": "Size", "variant": None})

        require(feature.variant is FeatureVariant.NONE, 'Expected NONE for missing variant')
        require(feature.possible_values == [], 'Expected no possible values')

    def test_standard_nesting(self):
        standard = Standard.from_dict(STANDARDS[0])

        version = standard.get_version(31)
        require(version.title == "2019", 'Expected version lookup')
        require([r.title for r in version.technical_results] == ["Class 3"], 'Expected technical results')
        require(standard.get_version(99) is None, 'Expected None for unknown version')

    def test_titled_item_keeps_subclass(self):
        label = Label.from_dict({"id": 5, "title": "Eco"})

        require(isinstance(label, Label), 'Expected Label instance')
        require(label.to_option() == Option(label="Eco", value=5), 'Expected option mapping')

    def test_missing_id_is_rejected(self):
        with pytest.raises(CatalogDataError):
            Category.from_dict({"title": "No id"})

        with pytest.raises(CatalogDataError):
            Option.from_dict({"label": "Blue"})


class TestDraft:
    def test_payload_omits_unset_ids(self):
        payload = Draft(product_sku="SKU-1").to_payload()

        require("category" not in payload, 'Unset category must be omitted')
        require("standardVersion" not in payload, 'Unset version must be omitted')
        require(payload["productSKU"] == "SKU-1", 'Expected API field names')
        require(payload["features"] == {}, 'Expected empty feature map')

    def test_clear_subcategory_selections(self):
        draft = Draft(
            category=1, subcategory=2, features={1: [10]}, labels=[5], use_cases=[6],
            standard=30, standard_version=31, technical_result=[301],
        )

        draft.clear_subcategory_selections()

        require(draft.features == {} and draft.labels == [] and draft.use_cases == [], 'Expected lists cleared')
        require(draft.standard is None and draft.standard_version is None, 'Expected standard cleared')
        require(draft.technical_result == [], 'Expected technical results cleared')
        require(draft.subcategory == 2, 'Subcategory itself must be kept')
