"""Unit tests for candidate sanitizing and validation."""

import math

import pytest

from recipe_pipeline.models.errors import CandidateValidationError, NoValidRecipesError, UnparseableOutputError
from recipe_pipeline.models.models import RecipeDraft
from recipe_pipeline.parsing.sanitizer import (
    parse_recipe_entries,
    sanitize_amount,
    sanitize_and_validate,
    sanitize_candidate,
    validate_candidate,
)


class TestSanitizeAmount:
    """Test ingredient amount coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (2, 2.0),
            (0.25, 0.25),
            (0, 0.0),
            ("3", 3.0),
            ("1.5", 1.5),
            ("1/2", 0.5),
            ("3/4 cup", 0.75),
            ("about 1/2", 0.5),
            ("approx. 3/4 cup", 0.75),
            ("roughly 1 1/2 cups", 1.5),
            ("1 1/2", 1.5),
            ("1-2", 1.0),
            ("2 - 3 cloves", 2.0),
            ("2 cups", 2.0),
            ("about 4", 4.0),
            (".5", 0.5),
            ("½", 0.5),
            ("1½", 1.5),
            ("¼ tsp", 0.25),
        ],
    )
    def test_parses_numeric_forms(self, value, expected):
        assert sanitize_amount(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["to taste", "", None, "a pinch", True])
    def test_non_numeric_defaults_to_one(self, value):
        assert sanitize_amount(value) == 1.0

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan, -2, "1/0"])
    def test_result_is_finite_and_non_negative(self, value):
        result = sanitize_amount(value)
        assert math.isfinite(result)
        assert result >= 0

    def test_zero_denominator_falls_back_to_leading_number(self):
        assert sanitize_amount("1/0") == 1.0
        assert sanitize_amount("3/0 cups") == 3.0


class TestSanitizeCandidate:
    """Test candidate-level sanitizing."""

    def test_amounts_sanitized_without_mutating_input(self, valid_recipe):
        original_amount = valid_recipe["ingredients"][1]["amount"]

        sanitized = sanitize_candidate(valid_recipe)

        assert sanitized["ingredients"][1]["amount"] == 0.5
        assert valid_recipe["ingredients"][1]["amount"] == original_amount

    def test_non_object_ingredients_passed_through(self, recipe_factory):
        candidate = recipe_factory(ingredients=["2 eggs", {"name": "salt"}])

        sanitized = sanitize_candidate(candidate)

        assert sanitized["ingredients"] == ["2 eggs", {"name": "salt", "amount": 1.0}]

    def test_missing_amount_defaults_to_one(self, valid_recipe):
        """Test an ingredient without an amount ("to taste") keeps its recipe valid."""
        valid_recipe["ingredients"].append({"name": "salt", "unit": "to taste"})

        sanitized = sanitize_candidate(valid_recipe)
        drafts, rejected = sanitize_and_validate({"recipes": [valid_recipe]})

        assert sanitized["ingredients"][-1] == {"name": "salt", "unit": "to taste", "amount": 1.0}
        assert rejected == []
        assert drafts[0].ingredients[-1].amount == 1.0
        assert drafts[0].ingredients[-1].unit == "to taste"

    def test_other_fields_untouched(self, recipe_factory):
        candidate = recipe_factory(prepTime="10")
        assert sanitize_candidate(candidate)["prepTime"] == "10"


class TestValidateCandidate:
    """Test candidate to RecipeDraft mapping."""

    def test_valid_candidate(self, valid_recipe):
        draft = validate_candidate(sanitize_candidate(valid_recipe))

        assert isinstance(draft, RecipeDraft)
        assert draft.title == "Greek Yogurt Parfait"
        assert [i.amount for i in draft.ingredients] == [1.0, 0.5, 1.0]

    def test_non_object_candidate(self):
        with pytest.raises(CandidateValidationError, match="expected an object"):
            validate_candidate("Oatmeal")

    def test_reasons_name_the_failing_fields(self, recipe_factory):
        candidate = recipe_factory(prepTime="10", difficulty="Expert")

        with pytest.raises(CandidateValidationError) as exc:
            validate_candidate(candidate)

        reasons = " ".join(exc.value.reasons)
        assert "prepTime" in reasons
        assert "difficulty" in reasons

    def test_unsanitized_fraction_is_rejected(self, valid_recipe):
        """Test the validator itself never coerces strings into numbers."""
        with pytest.raises(CandidateValidationError, match="amount"):
            validate_candidate(valid_recipe)


class TestSanitizeAndValidate:
    """Test batch filtering."""

    def test_missing_recipes_key(self):
        with pytest.raises(UnparseableOutputError):
            parse_recipe_entries({"recipe": []})

    def test_recipes_not_a_list(self):
        with pytest.raises(UnparseableOutputError):
            sanitize_and_validate({"recipes": {"title": "x"}})

    def test_all_valid(self, recipe_factory):
        parsed = {"recipes": [recipe_factory(title=f"Recipe {i}") for i in range(3)]}

        drafts, rejected = sanitize_and_validate(parsed)

        assert [d.title for d in drafts] == ["Recipe 0", "Recipe 1", "Recipe 2"]
        assert rejected == []

    @pytest.mark.parametrize("n,k", [(1, 0), (3, 1), (4, 3), (5, 2)])
    def test_n_minus_k_survive(self, recipe_factory, n, k):
        """Test a batch with K invalid of N candidates yields exactly N-K drafts."""
        entries = [recipe_factory(title=f"Recipe {i}") for i in range(n)]
        for i in range(k):
            entries[i]["servings"] = "two"

        drafts, rejected = sanitize_and_validate({"recipes": entries})

        assert len(drafts) == n - k
        assert [r.index for r in rejected] == list(range(k))
        assert all(r.title == f"Recipe {r.index}" for r in rejected)

    @pytest.mark.parametrize("n", [1, 3])
    def test_all_invalid_raises(self, recipe_factory, n):
        entries = [recipe_factory(title=f"Recipe {i}", ingredients=[]) for i in range(n)]

        with pytest.raises(NoValidRecipesError) as exc:
            sanitize_and_validate({"recipes": entries})

        assert len(exc.value.rejected) == n

    def test_empty_recipes_array_raises(self):
        with pytest.raises(NoValidRecipesError):
            sanitize_and_validate({"recipes": []})

    def test_non_object_entries_rejected(self, valid_recipe):
        drafts, rejected = sanitize_and_validate({"recipes": ["not a recipe", valid_recipe]})

        assert len(drafts) == 1
        assert rejected[0].index == 0
        assert rejected[0].title is None
