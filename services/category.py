import logging

from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit
from exceptions import (
    ValidationException,
    ConflictException,
    CategoryNotFoundException,
    CategoryInUseException,
)
from models.category import CategoryDTO, CategoryTreeNodeDTO
from models.operation_result import OperationResult
from repositories.category import CategoryRepository
from repositories.product import ProductRepository
from utils.error_handler import service_operation

logger = logging.getLogger(__name__)

MAX_CATEGORY_NAME_LENGTH = 100


class CategoryService:

    @staticmethod
    async def _validate_category(category: CategoryDTO, session: AsyncSession):
        if category.name is None or category.name.strip() == "":
            raise ValidationException("Category name must not be empty", field="name")
        if len(category.name) > MAX_CATEGORY_NAME_LENGTH:
            raise ValidationException(f"Category name must not exceed {MAX_CATEGORY_NAME_LENGTH} characters",
                                      field="name")
        if category.parent_id is not None:
            if category.id is not None and category.parent_id == category.id:
                raise ValidationException("A category cannot be its own parent", field="parent_id")
            if await CategoryRepository.get_active_by_id(category.parent_id, session) is None:
                raise CategoryNotFoundException(category.parent_id)

    @staticmethod
    async def _is_descendant(candidate_id: int, ancestor_id: int, session: AsyncSession) -> bool:
        """True when walking up from candidate_id reaches ancestor_id."""
        visited = set()
        current_id = candidate_id
        while current_id is not None and current_id not in visited:
            if current_id == ancestor_id:
                return True
            visited.add(current_id)
            current = await CategoryRepository.get_by_id(current_id, session)
            current_id = current.parent_id if current else None
        return False

    @staticmethod
    @service_operation("create category")
    async def create_category(category: CategoryDTO, session: AsyncSession) -> OperationResult:
        await CategoryService._validate_category(category, session)
        category.name = category.name.strip()
        if await CategoryRepository.name_exists(category.name, session):
            raise ConflictException(f"Category name '{category.name}' already exists", details={'name': category.name})
        category_id = await CategoryRepository.create(category, session)
        await session_commit(session)
        logger.info(f"Category {category_id} created")
        return OperationResult.ok(await CategoryRepository.get_by_id(category_id, session),
                                  message="Category created")

    @staticmethod
    @service_operation("update category")
    async def update_category(category_id: int, changes: dict, session: AsyncSession) -> OperationResult:
        existing = await CategoryRepository.get_by_id(category_id, session)
        if existing is None:
            raise CategoryNotFoundException(category_id)
        category = existing.model_copy(update={**changes, 'id': category_id})
        await CategoryService._validate_category(category, session)
        if category.parent_id is not None and await CategoryService._is_descendant(category.parent_id, category_id,
                                                                                  session):
            raise ValidationException("A category cannot be moved below one of its subcategories", field="parent_id")
        category.name = category.name.strip()
        if await CategoryRepository.name_exists(category.name, session, exclude_id=category_id):
            raise ConflictException(f"Category name '{category.name}' already exists", details={'name': category.name})
        await CategoryRepository.update(category, session)
        await session_commit(session)
        logger.info(f"Category {category_id} updated")
        return OperationResult.ok(await CategoryRepository.get_by_id(category_id, session),
                                  message="Category updated")

    @staticmethod
    @service_operation("delete category")
    async def delete_category(category_id: int, session: AsyncSession) -> OperationResult:
        """Soft delete; refused while any active subcategory or active product still points here."""
        if await CategoryRepository.get_active_by_id(category_id, session) is None:
            raise CategoryNotFoundException(category_id)
        if await CategoryRepository.has_active_children(category_id, session):
            raise CategoryInUseException(category_id, "it has active subcategories")
        if await ProductRepository.has_active_in_category(category_id, session):
            raise CategoryInUseException(category_id, "it still contains active products")
        await CategoryRepository.soft_delete(category_id, session)
        await session_commit(session)
        logger.info(f"Category {category_id} deactivated")
        return OperationResult.ok(message="Category deleted")

    @staticmethod
    @service_operation("get category")
    async def get_category(category_id: int, session: AsyncSession) -> OperationResult:
        category = await CategoryRepository.get_active_by_id(category_id, session)
        if category is None:
            raise CategoryNotFoundException(category_id)
        return OperationResult.ok(category)

    @staticmethod
    @service_operation("list categories")
    async def list_categories(session: AsyncSession) -> OperationResult:
        return OperationResult.ok(await CategoryRepository.get_all_active(session))

    @staticmethod
    @service_operation("get category tree")
    async def get_category_tree(session: AsyncSession) -> OperationResult:
        """
        Active categories nested under their parents.

        Categories below a deactivated parent are unreachable from the roots and
        therefore not part of the tree.
        """
        categories = await CategoryRepository.get_all_active(session)
        nodes = {category.id: CategoryTreeNodeDTO(**category.model_dump()) for category in categories}
        roots = []
        # get_all_active is already ordered, so appending keeps sibling order
        for category in categories:
            node = nodes[category.id]
            if category.parent_id is None:
                roots.append(node)
            elif category.parent_id in nodes:
                nodes[category.parent_id].children.append(node)
        return OperationResult.ok(roots)

    @staticmethod
    @service_operation("get category path")
    async def get_category_path(category_id: int, session: AsyncSession) -> OperationResult:
        category = await CategoryRepository.get_active_by_id(category_id, session)
        if category is None:
            raise CategoryNotFoundException(category_id)
        path = [category]
        visited = {category.id}
        while category.parent_id is not None and category.parent_id not in visited:
            category = await CategoryRepository.get_by_id(category.parent_id, session)
            if category is None:
                break
            visited.add(category.id)
            path.append(category)
        path.reverse()
        return OperationResult.ok(path)

    @staticmethod
    @service_operation("search categories")
    async def search_categories(keyword: str | None, session: AsyncSession) -> OperationResult:
        if keyword is None or keyword.strip() == "":
            return OperationResult.ok(await CategoryRepository.get_all_active(session))
        return OperationResult.ok(await CategoryRepository.search(keyword.strip(), session))
