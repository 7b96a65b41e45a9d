from storefront.models.catalog.category import Category
