import logging
import math
import re
import uuid
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import (
    CircularReferenceError,
    DuplicateSlugError,
    HasChildrenError,
    NotFoundError,
    OrphanWouldResultError,
    ParentNotFoundError,
    ReassignTargetNotFoundError,
    SelfParentError,
    ValidationFailedError,
)
from storefront.db.base import utc_now
from storefront.models.catalog.category import Category
from storefront.schemas.catalog.category import (
    CategoryBulkUpdate,
    CategoryCreate,
    CategoryDetail,
    CategoryRead,
    CategoryReorder,
    CategoryTreeNode,
    CategoryUpdate,
)
from storefront.services.catalog.category_tree import CategoryTree, group_by_level
from storefront.utils.slugs import slugify

logger = logging.getLogger(__name__)

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

ROOT_SENTINELS = {"root", "null", ""}

SORTABLE_FIELDS = {
    "sortOrder": Category.sort_order,
    "name": Category.name,
    "createdAt": Category.created_at,
    "updatedAt": Category.updated_at,
    "level": Category.level,
}


class CategoryService:
    """Category hierarchy: reads, tree building and invariant-preserving mutations.

    Every mutation validates first and then writes inside the session's single
    transaction, committed once; any failure rolls the whole operation back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Getters ----------
    async def get_category(self, category_id: uuid.UUID) -> Optional[Category]:
        result = await self.session.execute(
            select(Category).where(Category.category_id == category_id)
        )
        return result.scalar_one_or_none()

    async def get_category_by_slug(self, slug: str) -> Optional[Category]:
        result = await self.session.execute(
            select(Category).where(Category.slug == slug)
        )
        return result.scalar_one_or_none()

    async def get_children(self, category_id: uuid.UUID) -> List[Category]:
        result = await self.session.execute(
            select(Category)
            .where(Category.parent_id == category_id)
            .order_by(Category.sort_order.asc(), Category.name.asc())
        )
        return list(result.scalars().all())

    async def get_category_detail(
        self,
        id_or_slug: str,
        include_children: bool = False,
        include_parent: bool = False,
    ) -> CategoryDetail:
        """Look up by id when the identifier is a UUID, by slug otherwise."""
        if UUID_RE.match(id_or_slug):
            category = await self.get_category(uuid.UUID(id_or_slug))
        else:
            category = await self.get_category_by_slug(id_or_slug.lower())
        if category is None:
            raise NotFoundError()

        extra: Dict[str, Any] = {}
        if include_children:
            children = await self.get_children(category.category_id)
            extra["children"] = [CategoryRead.model_validate(c) for c in children]
        if include_parent:
            parent = await self.get_category(category.parent_id) if category.parent_id else None
            extra["parent"] = CategoryRead.model_validate(parent) if parent else None

        base = CategoryRead.model_validate(category)
        return CategoryDetail(**base.model_dump(), **extra)

    async def list_categories(
        self,
        include_inactive: bool = False,
        parent_id: Optional[str] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        level: Optional[int] = None,
        sort_by: str = "sortOrder",
        sort_order: str = "asc",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Flat, filtered and paginated listing."""
        limit = limit or settings.DEFAULT_PAGE_SIZE
        query = select(Category)

        if not include_inactive:
            query = query.where(Category.is_active == True)
        if parent_id is not None:
            if parent_id.strip().lower() in ROOT_SENTINELS:
                query = query.where(Category.parent_id.is_(None))
            else:
                query = query.where(Category.parent_id == self._parse_uuid(parent_id, "parentId"))
        if featured is not None:
            query = query.where(Category.is_featured == featured)
        if search:
            query = query.where(Category.name.ilike(f"%{search}%"))
        if level is not None:
            query = query.where(Category.level == level)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar() or 0

        # Unknown sort fields fall back to sortOrder
        sort_column = SORTABLE_FIELDS.get(sort_by, Category.sort_order)
        direction = sort_column.desc() if sort_order == "desc" else sort_column.asc()
        query = (
            query.order_by(direction, Category.name.asc(), Category.category_id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)

        return {
            "data": list(result.scalars().all()),
            "meta": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    async def get_category_tree(self, include_inactive: bool = False) -> Dict[str, Any]:
        """Nested forest of every qualifying category, siblings by sortOrder."""
        query = select(Category)
        if not include_inactive:
            query = query.where(Category.is_active == True)
        query = query.order_by(Category.sort_order.asc(), Category.name.asc())
        categories = list((await self.session.execute(query)).scalars().all())

        grouped: Dict[Optional[uuid.UUID], List[Category]] = {}
        for category in categories:
            grouped.setdefault(category.parent_id, []).append(category)

        def build(parent_id: Optional[uuid.UUID], seen: frozenset) -> List[CategoryTreeNode]:
            nodes = []
            for category in grouped.get(parent_id, []):
                if category.category_id in seen:
                    continue
                base = CategoryRead.model_validate(category)
                nodes.append(
                    CategoryTreeNode(
                        **base.model_dump(),
                        children=build(category.category_id, seen | {category.category_id}),
                    )
                )
            return nodes

        return {"data": build(None, frozenset()), "meta": {"total": len(categories)}}

    # ---------- Create / Update / Delete ----------
    async def create_category(self, data: CategoryCreate) -> Category:
        try:
            slug = data.slug or slugify(data.name)
            if not slug:
                raise ValidationFailedError("Slug could not be derived from name; provide one explicitly")

            await self._ensure_slug_available(slug)

            level = 0
            if data.parent_id is not None:
                parent = await self.get_category(data.parent_id)
                if parent is None:
                    raise ParentNotFoundError()
                level = parent.level + 1

            now = utc_now()
            category = Category(
                category_id=uuid.uuid4(),
                name=data.name,
                slug=slug,
                description=data.description,
                image=data.image or None,
                icon=data.icon,
                parent_id=data.parent_id,
                level=level,
                sort_order=data.sort_order,
                is_active=data.is_active,
                is_featured=data.is_featured,
                meta_title=data.meta_title,
                meta_description=data.meta_description,
                created_at=now,
                updated_at=now,
            )
            self.session.add(category)
            await self._flush(slug)
            await self.session.commit()
            await self.session.refresh(category)
            logger.info(f"Category created: {category.slug} (level {category.level})")
            return category

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating category: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create category")

    async def update_category(self, category_id: uuid.UUID, data: CategoryUpdate) -> Category:
        try:
            category = await self.get_category(category_id)
            if category is None:
                raise NotFoundError()

            changes = data.model_dump(exclude_unset=True)

            if "slug" in changes:
                if not changes["slug"]:
                    raise ValidationFailedError("Slug cannot be empty")
                if changes["slug"] != category.slug:
                    await self._ensure_slug_available(changes["slug"])
            if "name" in changes and not changes["name"]:
                raise ValidationFailedError("Name cannot be empty")

            parent_changed = "parent_id" in changes and changes["parent_id"] != category.parent_id
            tree: Optional[CategoryTree] = None
            new_level = category.level
            if "parent_id" in changes:
                new_parent_id = changes["parent_id"]
                if new_parent_id == category_id:
                    raise SelfParentError()
                if new_parent_id is None:
                    new_level = 0
                else:
                    parent = await self.get_category(new_parent_id)
                    if parent is None:
                        raise ParentNotFoundError()
                    tree = await self._load_tree()
                    if tree.is_descendant(new_parent_id, category_id):
                        raise CircularReferenceError()
                    new_level = parent.level + 1
                changes["level"] = new_level
            if parent_changed and tree is None:
                tree = await self._load_tree()

            if "image" in changes:
                changes["image"] = changes["image"] or None

            for field, value in changes.items():
                setattr(category, field, value)
            category.updated_at = utc_now()
            await self._flush(category.slug)

            if parent_changed:
                tree.move(category_id, changes["parent_id"])
                level_changes = tree.relevel(category_id, new_level)
                level_changes.pop(category_id, None)
                await self._apply_levels(level_changes)
                logger.info(
                    f"Category {category_id} moved under {changes['parent_id']}; "
                    f"{len(level_changes)} descendant level(s) updated"
                )

            await self.session.commit()
            await self.session.refresh(category)
            logger.info(f"Category updated: {category.slug}")
            return category

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating category {category_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update category")

    async def delete_category(
        self,
        category_id: uuid.UUID,
        cascade: bool = False,
        reassign_to: Optional[str] = None,
    ) -> int:
        """Delete a category and return how many rows were removed.

        Children block the delete unless ``cascade`` removes the whole subtree or
        ``reassign_to`` (a category id, or "null" for root) re-parents them.
        """
        try:
            category = await self.get_category(category_id)
            if category is None:
                raise NotFoundError()

            tree = await self._load_tree()
            children = tree.children(category_id)
            deleted = [category_id]

            if children:
                if cascade:
                    subtree = tree.descendants(category_id)
                    for batch in tree.deletion_batches(subtree):
                        await self._delete_ids(batch)
                    deleted.extend(subtree)
                elif reassign_to and reassign_to.strip():
                    await self._reassign_children(tree, category_id, children, reassign_to)
                else:
                    raise HasChildrenError(len(children))

            await self._delete_ids([category_id])
            await self.session.commit()
            logger.info(f"Category deleted: {category.slug} ({len(deleted)} row(s))")
            return len(deleted)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting category {category_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete category")

    # ---------- Bulk operations ----------
    async def bulk_update(self, payload: CategoryBulkUpdate) -> int:
        try:
            data = payload.data
            fields = data.model_fields_set
            tree = await self._load_tree()
            ids = [category_id for category_id in dict.fromkeys(payload.ids) if category_id in tree]
            if not ids:
                return 0

            values: Dict[str, Any] = {"updated_at": utc_now()}
            if "is_active" in fields and data.is_active is not None:
                values["is_active"] = data.is_active
            if "is_featured" in fields and data.is_featured is not None:
                values["is_featured"] = data.is_featured

            level_changes: Dict[uuid.UUID, int] = {}
            if "parent_id" in fields:
                new_parent_id = data.parent_id
                new_level = 0
                if new_parent_id is not None:
                    if new_parent_id in ids:
                        raise SelfParentError("A category in the batch cannot become the parent of the batch")
                    if new_parent_id not in tree:
                        raise ParentNotFoundError()
                    if any(tree.is_descendant(new_parent_id, category_id) for category_id in ids):
                        raise CircularReferenceError()
                    new_level = tree.level_of[new_parent_id] + 1
                values["parent_id"] = new_parent_id
                for category_id in ids:
                    tree.move(category_id, new_parent_id)
                for category_id in ids:
                    level_changes.update(tree.relevel(category_id, new_level))

            await self.session.execute(
                update(Category)
                .where(Category.category_id.in_(ids))
                .values(**values)
            )
            await self._apply_levels(level_changes)
            await self.session.commit()
            logger.info(f"Bulk updated {len(ids)} categories ({', '.join(sorted(values))})")
            return len(ids)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error in bulk category update: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to perform bulk operation")

    async def bulk_delete(self, ids: List[uuid.UUID]) -> int:
        try:
            id_set = set(ids)
            tree = await self._load_tree()
            orphaned = [
                child
                for category_id in id_set
                for child in tree.children(category_id)
                if child not in id_set
            ]
            if orphaned:
                raise OrphanWouldResultError(len(orphaned))

            existing = [category_id for category_id in id_set if category_id in tree]
            for batch in tree.deletion_batches(existing):
                await self._delete_ids(batch)
            await self.session.commit()
            logger.info(f"Bulk deleted {len(existing)} categories")
            return len(existing)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error in bulk category delete: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to perform bulk delete")

    async def reorder(self, payload: CategoryReorder) -> int:
        try:
            now = utc_now()
            updated = 0
            for item in payload.items:
                result = await self.session.execute(
                    update(Category)
                    .where(Category.category_id == item.id)
                    .values(sort_order=item.sort_order, updated_at=now)
                )
                updated += result.rowcount or 0
            await self.session.commit()
            logger.info(f"Reordered {updated} categories")
            return updated

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error reordering categories: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reorder categories")

    # ---------- Helpers ----------
    async def _load_tree(self) -> CategoryTree:
        result = await self.session.execute(
            select(Category.category_id, Category.parent_id, Category.level)
        )
        return CategoryTree(result.all())

    async def _ensure_slug_available(self, slug: str) -> None:
        exists = await self.session.execute(
            select(Category.category_id).where(Category.slug == slug).limit(1)
        )
        if exists.scalar_one_or_none() is not None:
            raise DuplicateSlugError(slug)

    async def _reassign_children(
        self,
        tree: CategoryTree,
        category_id: uuid.UUID,
        children: List[uuid.UUID],
        reassign_to: str,
    ) -> None:
        if reassign_to.strip().lower() == "null":
            target_id = None
            child_level = 0
        else:
            target_id = self._parse_uuid(reassign_to, "reassignTo")
            if target_id not in tree:
                raise ReassignTargetNotFoundError()
            if target_id == category_id or tree.is_descendant(target_id, category_id):
                raise CircularReferenceError("Cannot reassign children to the deleted category or its descendants")
            child_level = tree.level_of[target_id] + 1

        await self.session.execute(
            update(Category)
            .where(Category.parent_id == category_id)
            .values(parent_id=target_id, level=child_level, updated_at=utc_now())
        )

        level_changes: Dict[uuid.UUID, int] = {}
        for child in children:
            tree.move(child, target_id)
            tree.level_of[child] = child_level
            level_changes.update(tree.relevel(child, child_level))
        await self._apply_levels(level_changes)

    async def _apply_levels(self, level_changes: Dict[uuid.UUID, int]) -> None:
        now = utc_now()
        for level, category_ids in group_by_level(level_changes).items():
            await self.session.execute(
                update(Category)
                .where(Category.category_id.in_(category_ids))
                .values(level=level, updated_at=now)
            )

    async def _delete_ids(self, category_ids: List[uuid.UUID]) -> None:
        if not category_ids:
            return
        await self.session.execute(
            delete(Category)
            .where(Category.category_id.in_(category_ids))
        )

    async def _flush(self, slug: str) -> None:
        """Flush pending writes; the unique slug index is authoritative when two writers race."""
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if "slug" in str(e.orig).lower():
                raise DuplicateSlugError(slug, status_code=status.HTTP_409_CONFLICT)
            raise

    @staticmethod
    def _parse_uuid(value: str, field: str) -> uuid.UUID:
        try:
            return uuid.UUID(value)
        except (TypeError, ValueError):
            raise ValidationFailedError(f"Invalid {field}", details={field: value})
