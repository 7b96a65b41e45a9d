import uuid
from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Index, Uuid
from storefront.db.base import BaseModel

class Category(BaseModel):
    __tablename__ = 'categories'

    category_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String(150), nullable=False)
    description = Column(Text)
    image = Column(String(500))
    icon = Column(String(100))
    parent_id = Column(
        Uuid,
        ForeignKey('categories.category_id', name='categories_parent_fk', ondelete='SET NULL'),
        nullable=True,
    )
    level = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    meta_title = Column(String(200))
    meta_description = Column(Text)

    # Children are queried explicitly by CategoryService
    __table_args__ = (
        Index('category_slug_idx', 'slug', unique=True),
        Index('category_parent_idx', 'parent_id'),
        Index('category_active_idx', 'is_active'),
        Index('category_featured_idx', 'is_featured'),
    )

    def __repr__(self):
        return f"<Category {self.slug} level={self.level}>"
