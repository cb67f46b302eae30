"""Recipe aggregate create, read, update and delete against SQLite."""

import uuid

import pytest

from recipe_manager.database import session_scope
from recipe_manager.errors import (
    ConflictError,
    NotFoundError,
    OperationTimeout,
    RecipeValidationError,
    StorageFault,
)
from recipe_manager.models import (
    Ingredient,
    MeasurementSystem,
    MeasurementUnit,
    Recipe,
    RecipeIngredient,
    RecipeStep,
    Tag,
    recipe_tags,
)
from recipe_manager.schemas import (
    RecipeIngredientRequest,
    RecipeRequest,
    RecipeStepRequest,
    RecipeTagRequest,
)
from recipe_manager.store import Deadline


def count_rows(session_factory, model) -> int:
    with session_scope(session_factory) as db:
        if model is recipe_tags:
            return db.query(recipe_tags).count()
        return db.query(model).count()


class TestCreate:
    def test_creates_full_aggregate(self, store, tart_request):
        recipe = store.create(tart_request)

        assert isinstance(recipe.id, uuid.UUID)
        assert recipe.title == "Asparagus and Feta Tart"
        assert recipe.serves == 4
        assert recipe.total_time_minutes == 40
        assert recipe.created_at is not None
        assert recipe.updated_at is not None

        assert [i.ingredient_name for i in recipe.ingredients] == ["asparagus", "feta cheese", "puff pastry"]
        assert [s.step_number for s in recipe.steps] == [1, 2, 3, 4]
        assert [t.name for t in recipe.tags] == ["Mediterranean", "pastry", "vegetarian"]

        feta = recipe.ingredients[1]
        assert feta.quantity == 100
        assert feta.notes == "crumbled"
        assert feta.unit.name == "gram"
        assert feta.unit.system is MeasurementSystem.METRIC

    def test_minimal_tart(self, store):
        request = RecipeRequest(
            title="Tart",
            prep_time_minutes=15,
            cook_time_minutes=25,
            ingredients=[RecipeIngredientRequest(ingredient_name="feta", quantity=200, unit_name="gram")],
            steps=[RecipeStepRequest(step_number=1, instruction="Bake.")],
            tags=[RecipeTagRequest(name="vegetarian")],
        )

        recipe = store.get(store.create(request).id)

        assert recipe.total_time_minutes == 40
        assert [(i.ingredient_name, i.unit.name) for i in recipe.ingredients] == [("feta", "gram")]
        assert len(recipe.steps) == 1
        assert [t.name for t in recipe.tags] == ["vegetarian"]

    def test_get_returns_what_create_returned(self, store, tart_request):
        created = store.create(tart_request)
        assert store.get(created.id) == created

    def test_reference_rows_shared_between_recipes(self, store, session_factory, tart_request):
        first = store.create(tart_request)
        second = store.create(tart_request.model_copy(update={"title": "Second Tart"}))

        assert [i.ingredient_id for i in first.ingredients] == [i.ingredient_id for i in second.ingredients]
        assert count_rows(session_factory, Ingredient) == 3
        # gram and sheet
        assert count_rows(session_factory, MeasurementUnit) == 2
        assert count_rows(session_factory, Tag) == 3

    def test_existing_ingredient_keeps_category(self, store, session_factory, tart_request):
        with session_scope(session_factory) as db:
            db.add(Ingredient(name="asparagus", category="vegetables"))

        recipe = store.create(tart_request)

        assert recipe.ingredients[0].ingredient_category == "vegetables"
        assert recipe.ingredients[1].ingredient_category is None

    def test_ingredients_ordered_by_sort_order(self, store):
        request = RecipeRequest(
            title="Dukkah",
            ingredients=[
                RecipeIngredientRequest(ingredient_name="nigella seeds", sort_order=2),
                RecipeIngredientRequest(ingredient_name="cumin seeds", sort_order=0),
                RecipeIngredientRequest(ingredient_name="coriander seeds", sort_order=1),
            ],
        )

        recipe = store.create(request)

        assert [i.ingredient_name for i in recipe.ingredients] == [
            "cumin seeds",
            "coriander seeds",
            "nigella seeds",
        ]

    def test_equal_sort_order_falls_back_to_name(self, store):
        names = ["zucchini", "asparagus", "mint", "basil"]
        request = RecipeRequest(
            title="Green salad",
            ingredients=[RecipeIngredientRequest(ingredient_name=name) for name in names],
        )

        recipe = store.create(request)

        assert [i.ingredient_name for i in recipe.ingredients] == sorted(names)

    def test_steps_ordered_by_step_number(self, store):
        request = RecipeRequest(
            title="Boiled eggs",
            steps=[
                RecipeStepRequest(step_number=3, instruction="Peel."),
                RecipeStepRequest(step_number=1, instruction="Boil water."),
                RecipeStepRequest(step_number=2, instruction="Cook eggs.", duration_minutes=7),
            ],
        )

        recipe = store.create(request)

        assert [s.instruction for s in recipe.steps] == ["Boil water.", "Cook eggs.", "Peel."]
        assert recipe.steps[1].duration_minutes == 7

    def test_line_without_unit(self, store, session_factory):
        request = RecipeRequest(
            title="Seasoning",
            ingredients=[
                RecipeIngredientRequest(ingredient_name="salt"),
                RecipeIngredientRequest(ingredient_name="black pepper", unit_name="   ", sort_order=1),
            ],
        )

        recipe = store.create(request)

        assert [i.unit for i in recipe.ingredients] == [None, None]
        assert [i.quantity for i in recipe.ingredients] == [None, None]
        assert count_rows(session_factory, MeasurementUnit) == 0

    def test_empty_collections(self, store):
        recipe = store.create(RecipeRequest(title="Toast"))

        assert recipe.ingredients == []
        assert recipe.steps == []
        assert recipe.tags == []
        assert recipe.total_time_minutes is None

    @pytest.mark.parametrize(
        "prep, cook, total",
        [(15, 25, 40), (15, None, 15), (None, 10, 10), (0, 0, 0), (None, None, None)],
    )
    def test_total_time_generated(self, store, prep, cook, total):
        recipe = store.create(RecipeRequest(title="Timed", prep_time_minutes=prep, cook_time_minutes=cook))
        assert recipe.total_time_minutes == total

    def test_repeated_tag_linked_once(self, store, session_factory):
        request = RecipeRequest(
            title="Greek salad",
            tags=[RecipeTagRequest(name="quick"), RecipeTagRequest(name="quick")],
        )

        recipe = store.create(request)

        assert [t.name for t in recipe.tags] == ["quick"]
        assert count_rows(session_factory, recipe_tags) == 1

    def test_duplicate_step_number_rolls_back_everything(self, store, session_factory, tart_request):
        request = tart_request.model_copy(
            update={
                "steps": [
                    RecipeStepRequest(step_number=1, instruction="Heat the oven."),
                    RecipeStepRequest(step_number=1, instruction="Heat it again."),
                ]
            }
        )

        with pytest.raises(ConflictError) as excinfo:
            store.create(request)

        assert excinfo.value.operation == "create"
        assert excinfo.value.recipe_id is not None
        assert "step 1" in str(excinfo.value)
        with pytest.raises(NotFoundError):
            store.get(excinfo.value.recipe_id)
        assert store.list() == []
        # Names resolved earlier in the failed transaction are gone too
        assert count_rows(session_factory, Ingredient) == 0
        assert count_rows(session_factory, RecipeIngredient) == 0

    def test_duplicate_ingredient_is_conflict(self, store, session_factory):
        request = RecipeRequest(
            title="Lemon yogurt",
            ingredients=[
                RecipeIngredientRequest(ingredient_name="lemon", sort_order=0),
                RecipeIngredientRequest(ingredient_name="lemon", sort_order=1),
            ],
        )

        with pytest.raises(ConflictError):
            store.create(request)

        assert count_rows(session_factory, Recipe) == 0

    def test_blank_ingredient_name_is_validation_error(self, store, session_factory):
        request = RecipeRequest(
            title="Mystery",
            ingredients=[RecipeIngredientRequest(ingredient_name="   ")],
        )

        with pytest.raises(RecipeValidationError) as excinfo:
            store.create(request)

        assert excinfo.value.operation == "create"
        assert count_rows(session_factory, Recipe) == 0


class TestGet:
    def test_unknown_id(self, store):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as excinfo:
            store.get(missing)

        assert excinfo.value.recipe_id == missing
        assert excinfo.value.operation == "get"


class TestList:
    def test_empty(self, store):
        assert store.list() == []

    def test_most_recently_updated_first(self, store):
        first = store.create(RecipeRequest(title="First"))
        second = store.create(RecipeRequest(title="Second"))
        assert [r.id for r in store.list()] == [second.id, first.id]

        store.update(first.id, RecipeRequest(title="First, edited"))
        assert [r.title for r in store.list()] == ["First, edited", "Second"]

    def test_summaries_have_empty_collections(self, store, tart_request):
        store.create(tart_request)

        (summary,) = store.list()

        assert summary.title == tart_request.title
        assert summary.total_time_minutes == 40
        assert summary.ingredients == []
        assert summary.steps == []
        assert summary.tags == []


class TestUpdate:
    def test_replaces_scalars_and_collections(self, store, session_factory, tart_request):
        created = store.create(tart_request)
        request = RecipeRequest(
            title="Feta Tart",
            serves=2,
            prep_time_minutes=10,
            ingredients=[RecipeIngredientRequest(ingredient_name="feta cheese", quantity=200, unit_name="gram")],
            steps=[RecipeStepRequest(step_number=1, instruction="Bake.")],
            tags=[RecipeTagRequest(name="quick")],
        )

        updated = store.update(created.id, request)

        assert updated.id == created.id
        assert updated.title == "Feta Tart"
        assert updated.serves == 2
        assert updated.cook_time_minutes is None
        assert updated.total_time_minutes == 10
        assert [i.ingredient_name for i in updated.ingredients] == ["feta cheese"]
        assert updated.ingredients[0].quantity == 200
        assert [s.instruction for s in updated.steps] == ["Bake."]
        assert [t.name for t in updated.tags] == ["quick"]
        assert store.get(created.id) == updated

        assert count_rows(session_factory, RecipeIngredient) == 1
        assert count_rows(session_factory, RecipeStep) == 1
        assert count_rows(session_factory, recipe_tags) == 1
        # Reference rows from the old version stay behind
        assert count_rows(session_factory, Ingredient) == 3
        assert count_rows(session_factory, Tag) == 4

    def test_empty_collections_clear_children(self, store, tart_request):
        created = store.create(tart_request)

        updated = store.update(created.id, RecipeRequest(title=tart_request.title))

        assert updated.ingredients == []
        assert updated.steps == []
        assert updated.tags == []

    def test_refreshes_updated_at_only(self, store, tart_request):
        created = store.create(tart_request)

        updated = store.update(created.id, tart_request)

        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at

    def test_unknown_id(self, store, session_factory):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as excinfo:
            store.update(missing, RecipeRequest(title="Nowhere", tags=[RecipeTagRequest(name="lost")]))

        assert excinfo.value.recipe_id == missing
        assert excinfo.value.operation == "update"
        assert count_rows(session_factory, Tag) == 0

    def test_failed_update_keeps_previous_version(self, store, tart_request):
        created = store.create(tart_request)
        request = tart_request.model_copy(
            update={
                "title": "Broken",
                "steps": [
                    RecipeStepRequest(step_number=2, instruction="One."),
                    RecipeStepRequest(step_number=2, instruction="Two."),
                ],
            }
        )

        with pytest.raises(ConflictError):
            store.update(created.id, request)

        assert store.get(created.id) == created


class TestDelete:
    def test_removes_aggregate_but_not_references(self, store, session_factory, tart_request):
        created = store.create(tart_request)

        store.delete(created.id)

        with pytest.raises(NotFoundError):
            store.get(created.id)
        assert count_rows(session_factory, RecipeIngredient) == 0
        assert count_rows(session_factory, RecipeStep) == 0
        assert count_rows(session_factory, recipe_tags) == 0
        assert count_rows(session_factory, Ingredient) == 3
        assert count_rows(session_factory, MeasurementUnit) == 2
        assert count_rows(session_factory, Tag) == 3

    def test_leaves_other_recipes_alone(self, store, tart_request):
        kept = store.create(tart_request)
        doomed = store.create(tart_request.model_copy(update={"title": "Doomed Tart"}))

        store.delete(doomed.id)

        assert store.get(kept.id) == kept
        assert [r.id for r in store.list()] == [kept.id]

    def test_unknown_id(self, store):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as excinfo:
            store.delete(missing)

        assert excinfo.value.operation == "delete"

    def test_twice(self, store, tart_request):
        created = store.create(tart_request)
        store.delete(created.id)

        with pytest.raises(NotFoundError):
            store.delete(created.id)


class TestTimeout:
    def test_expired_before_start(self, store, session_factory, tart_request):
        with pytest.raises(OperationTimeout) as excinfo:
            store.create(tart_request, timeout=0)

        assert isinstance(excinfo.value, StorageFault)
        assert excinfo.value.operation == "create"
        assert count_rows(session_factory, Recipe) == 0

    def test_expiring_midway_rolls_back(self, store, session_factory, tart_request, monkeypatch):
        real_check = Deadline.check
        checks = []

        def expiring_check(self, operation, recipe_id):
            # Expire once the recipe row and its ingredient lines are written
            checks.append(operation)
            if len(checks) > 4:
                self.expires_at = 0
            real_check(self, operation, recipe_id)

        monkeypatch.setattr(Deadline, "check", expiring_check)

        with pytest.raises(OperationTimeout):
            store.create(tart_request, timeout=60)

        assert count_rows(session_factory, Recipe) == 0
        assert count_rows(session_factory, RecipeIngredient) == 0
        assert count_rows(session_factory, Ingredient) == 0

    def test_expired_update_keeps_previous_version(self, store, tart_request):
        created = store.create(tart_request)

        with pytest.raises(OperationTimeout):
            store.update(created.id, RecipeRequest(title="Too slow"), timeout=0)

        assert store.get(created.id) == created

    def test_no_timeout_never_expires(self):
        Deadline(None).check("create", None)

    def test_expired_get(self, store, tart_request):
        created = store.create(tart_request)

        with pytest.raises(OperationTimeout) as excinfo:
            store.get(created.id, timeout=0)

        assert excinfo.value.operation == "get"
        assert excinfo.value.recipe_id == created.id
        assert store.get(created.id, timeout=60) == created

    def test_get_expiring_between_queries(self, store, tart_request, monkeypatch):
        created = store.create(tart_request)
        real_check = Deadline.check
        checks = []

        def expiring_check(self, operation, recipe_id):
            # Expire after the recipe row and its ingredient lines are read
            checks.append(operation)
            if len(checks) > 2:
                self.expires_at = 0
            real_check(self, operation, recipe_id)

        monkeypatch.setattr(Deadline, "check", expiring_check)

        with pytest.raises(OperationTimeout):
            store.get(created.id, timeout=60)

        assert checks == ["get", "get", "get"]

    def test_expired_list(self, store, tart_request):
        store.create(tart_request)

        with pytest.raises(OperationTimeout) as excinfo:
            store.list(timeout=0)

        assert excinfo.value.operation == "list"
        assert len(store.list(timeout=60)) == 1
