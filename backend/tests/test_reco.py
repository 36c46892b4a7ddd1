import itertools

import pytest

from lym.services.profile import SuggestionProfile
from lym.services.reco import calc_target_kcal, determine_diet_goal, is_safe, score_recipe


def recipe(**kw):
    base = {"calories": 600, "prep_time": 10, "ingredients": "riz, légumes, tofu"}
    base.update(kw)
    return base


def test_empty_profile_scores_80():
    assert score_recipe(recipe(), SuggestionProfile()) == 80


def test_vegetarian_scenario_scores_100():
    profile = SuggestionProfile(
        diet_type="vegetarian",
        allergies=("gluten",),
        cooking_time_weekday=15,
        daily_calories_target=1800,
    )
    assert score_recipe(recipe(), profile) == 100


def test_wheat_bread_without_literal_gluten_is_not_penalized():
    profile = SuggestionProfile(allergies=("gluten",), cooking_time_weekday=15, daily_calories_target=1800)
    assert score_recipe(recipe(ingredients="pain de blé, fromage"), profile) == 100


def test_allergen_penalty_case_insensitive():
    profile = SuggestionProfile(allergies=("Gluten",))
    safe = score_recipe(recipe(ingredients="riz"), profile)
    unsafe = score_recipe(recipe(ingredients="Farine, GLUTEN"), profile)
    assert safe == 90
    assert unsafe == 50
    assert safe - unsafe >= 30


def test_intolerances_join_exclude_list():
    profile = SuggestionProfile(intolerances=("lait",))
    assert score_recipe(recipe(ingredients="lait entier"), profile) == 50


def test_substring_semantics_preserved():
    profile = SuggestionProfile(allergies=("noix",))
    assert score_recipe(recipe(ingredients="noix de coco"), profile) == 50


def test_disliked_food_penalty():
    profile = SuggestionProfile(disliked_foods=("Tofu",))
    assert score_recipe(recipe(), profile) == 60


@pytest.mark.parametrize("calories,expected", [
    (600, 85),   # variance 0
    (720, 85),   # 0.2
    (800, 75),   # ~0.33
    (840, 75),   # 0.4
    (900, 70),   # 0.5
])
def test_calorie_bands(calories, expected):
    profile = SuggestionProfile(daily_calories_target=1800)
    assert score_recipe(recipe(calories=calories), profile) == expected


def test_prep_time_over_budget():
    profile = SuggestionProfile(cooking_time_weekday=15)
    assert score_recipe(recipe(prep_time=30), profile) == 70
    assert score_recipe(recipe(prep_time=15), profile) == 85


def test_all_penalties_stack():
    profile = SuggestionProfile(
        allergies=("riz",), disliked_foods=("tofu",), cooking_time_weekday=5, daily_calories_target=300,
    )
    # 70 + 0 - 10 - 30 - 20 = 10
    assert score_recipe(recipe(calories=2000, prep_time=60), profile) == 10


def test_score_always_in_range():
    profiles = [
        SuggestionProfile(allergies=a, disliked_foods=d, cooking_time_weekday=t, daily_calories_target=k)
        for a, d, t, k in itertools.product(
            [(), ("riz",)], [(), ("tofu",)], [None, 5, 60], [None, 600, 1800, 9000]
        )
    ]
    recipes = [recipe(calories=c, prep_time=p) for c in (0, 200, 600, 3000) for p in (0, 10, 90)]
    for p in profiles:
        for r in recipes:
            assert 0 <= score_recipe(r, p) <= 100


def test_missing_recipe_fields_do_not_fail():
    assert score_recipe({}, SuggestionProfile(allergies=("gluten",))) == 90


def test_is_safe():
    assert is_safe({"ingredients": "Pain, Gluten"}, []) is True
    assert is_safe({"ingredients": "Pain, Gluten"}, ["gluten"]) is False
    assert is_safe({"ingredients": None}, ["gluten"]) is True


def test_calc_target_kcal_clamps():
    # 유지 22*70*1.35=2079, 적자 하한 300
    assert calc_target_kcal(70, 69.9, 365) == 1779
    # 적자 상한 1000
    assert calc_target_kcal(70, 60, 7) == 1079
    # 하한 900
    assert calc_target_kcal(40, 30, 7) == 900


def test_determine_diet_goal():
    assert determine_diet_goal(80, 70) == "loss"
    assert determine_diet_goal(60, 70) == "gain"
    assert determine_diet_goal(70, 70) == "maintain"
