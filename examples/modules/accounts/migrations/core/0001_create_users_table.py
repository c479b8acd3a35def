from tenantry.migrations import Migration, register_migration


@register_migration
class Migration0001CreateUsersTable(Migration):
    def up(self):
        d = self.dialect
        self.execute(
            f"CREATE TABLE users ("
            f"id {d.auto_increment_pk()}, "
            f"email {d.string_type(255)} NOT NULL UNIQUE, "
            f"tenant_id {d.string_type(64)}, "
            f"created_at {d.timestamp_type()} {d.timestamp_default_now()}"
            f") {d.table_options()}".rstrip()
        )

    def down(self):
        self.execute("DROP TABLE users")
