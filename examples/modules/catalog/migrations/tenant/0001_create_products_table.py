from tenantry.migrations import Migration, register_migration


@register_migration
class Migration0001CreateProductsTable(Migration):
    """Per-tenant product catalogue."""

    def up(self):
        d = self.dialect
        self.execute(
            f"CREATE TABLE products ("
            f"id {d.auto_increment_pk()}, "
            f"name {d.string_type(255)} NOT NULL, "
            f"price INTEGER NOT NULL, "
            f"category {d.string_type(64)}"
            f") {d.table_options()}".rstrip()
        )
        self.execute("CREATE INDEX idx_products_category ON products (category)")

    def down(self):
        self.execute("DROP TABLE products")
