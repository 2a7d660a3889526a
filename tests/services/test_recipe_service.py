import pytest
from bson import ObjectId

from app.exception.common.auth_exception import RecipeForbiddenError
from app.exception.common.request_exception import RequestValidationFailedError
from app.exception.common.resource_exception import DuplicateDisplayIdError, RecipeNotFoundError, UserNotFoundError
from app.models.dto import AuthoredRecipeRequest, RecipeCreateRequest, RecipeUpdateRequest
from app.services.recipe_service import RecipeService


@pytest.fixture
def service(recipe_repo, user_repo, allocator, relationships):
    return RecipeService(recipe_repo, user_repo, allocator, relationships)


class TestCatalogRecipes:

    def test_create_allocates_sequential_ids(self, service):
        first = service.create_recipe(RecipeCreateRequest(title="A"))
        second = service.create_recipe(RecipeCreateRequest(title="B"))

        assert first.display_id == 0
        assert second.display_id == 1
        assert first.is_user_authored is False
        assert first.author_ref is None

    def test_create_with_caller_id(self, service):
        recipe = service.create_recipe(RecipeCreateRequest(id=500, title="A"))
        assert recipe.display_id == 500
        assert service.create_recipe(RecipeCreateRequest(title="B")).display_id == 501

    def test_create_duplicate_caller_id(self, service):
        service.create_recipe(RecipeCreateRequest(id=7, title="A"))
        with pytest.raises(DuplicateDisplayIdError):
            service.create_recipe(RecipeCreateRequest(id=7, title="B"))

    def test_create_requires_title(self, service):
        with pytest.raises(RequestValidationFailedError, match="Title is required"):
            service.create_recipe(RecipeCreateRequest(title="  "))

    def test_update_changes_display_id_with_conflict_check(self, service):
        a = service.create_recipe(RecipeCreateRequest(title="A"))
        b = service.create_recipe(RecipeCreateRequest(title="B"))

        with pytest.raises(DuplicateDisplayIdError):
            service.update_recipe(b.internal_id, RecipeUpdateRequest(id=a.display_id, title="B"))

        updated = service.update_recipe(b.internal_id, RecipeUpdateRequest(id=99, title="B2", ingredients=["egg"]))
        assert updated.display_id == 99
        assert updated.title == "B2"
        assert updated.ingredients == ["egg"]
        assert updated.instructions == ""

    def test_update_keeps_own_display_id(self, service):
        a = service.create_recipe(RecipeCreateRequest(title="A"))
        updated = service.update_recipe(a.internal_id, RecipeUpdateRequest(id=a.display_id, title="A2"))
        assert updated.display_id == a.display_id

    def test_delete_unknown(self, service):
        with pytest.raises(RecipeNotFoundError):
            service.delete_recipe(str(ObjectId()))


class TestAuthoredRecipes:

    def test_create_registers_authorship(self, service, user_repo, make_user, make_recipe):
        make_recipe(display_id=4999)
        author = make_user()

        recipe = service.create_authored_recipe(author.internal_id, AuthoredRecipeRequest(title="Mine"))

        assert recipe.display_id == 10000
        assert recipe.author_ref == author.internal_id
        assert recipe.is_user_authored is True
        assert user_repo.get(author.internal_id).created_recipes == [recipe.internal_id]

        second = service.create_authored_recipe(author.internal_id, AuthoredRecipeRequest(title="Mine 2"))
        assert second.display_id == 10001

    def test_list_in_creation_order(self, service, make_user):
        author = make_user()
        titles = ["one", "two", "three"]
        for title in titles:
            service.create_authored_recipe(author.internal_id, AuthoredRecipeRequest(title=title))

        assert [r.title for r in service.list_authored_recipes(author.internal_id)] == titles

    def test_update_by_author_only_changes_given_fields(self, service, make_user):
        author = make_user()
        recipe = service.create_authored_recipe(
            author.internal_id,
            AuthoredRecipeRequest(title="Mine", instructions="Boil.", ingredients=["water"]),
        )

        updated = service.update_authored_recipe(
            author.internal_id, recipe.internal_id, AuthoredRecipeRequest(instructions="Simmer.")
        )

        assert updated.title == "Mine"
        assert updated.instructions == "Simmer."
        assert updated.ingredients == ["water"]

    def test_update_by_other_user_forbidden(self, service, make_user):
        author, other = make_user(), make_user()
        recipe = service.create_authored_recipe(author.internal_id, AuthoredRecipeRequest(title="Mine"))

        with pytest.raises(RecipeForbiddenError):
            service.update_authored_recipe(other.internal_id, recipe.internal_id, AuthoredRecipeRequest(title="X"))

    def test_catalog_recipe_not_editable_through_authored_path(self, service, make_user, make_recipe):
        user = make_user()
        recipe = make_recipe()
        with pytest.raises(RecipeForbiddenError):
            service.delete_authored_recipe(user.internal_id, recipe.internal_id)

    def test_delete_unregisters_authorship(self, service, user_repo, recipe_repo, make_user):
        author = make_user()
        recipe = service.create_authored_recipe(author.internal_id, AuthoredRecipeRequest(title="Mine"))

        service.delete_authored_recipe(author.internal_id, recipe.internal_id)

        assert recipe_repo.get(recipe.internal_id) is None
        assert user_repo.get(author.internal_id).created_recipes == []

    def test_create_rolls_back_when_author_disappears(self, service, user_repo, recipe_repo, make_user, monkeypatch):
        """레시피 저장 후 작성자 연결이 실패하면 레시피도 남지 않아야 한다."""
        author = make_user()
        # 존재 확인과 createdRecipes 갱신 사이에 계정이 삭제된 상황
        monkeypatch.setattr(user_repo, "add_created_recipe", lambda user_id, recipe_id: None)

        with pytest.raises(UserNotFoundError):
            service.create_authored_recipe(author.internal_id, AuthoredRecipeRequest(title="Orphan"))

        assert recipe_repo.count({}) == 0
        assert recipe_repo.count({"title": "Orphan"}) == 0
