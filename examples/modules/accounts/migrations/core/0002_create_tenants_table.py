from tenantry.migrations import Migration, register_migration


@register_migration
class Migration0002CreateTenantsTable(Migration):
    def up(self):
        d = self.dialect
        self.execute(
            f"CREATE TABLE tenants (id {d.string_type(64)} PRIMARY KEY, name {d.string_type(255)} NOT NULL)"
        )

    def down(self):
        self.execute("DROP TABLE tenants")
