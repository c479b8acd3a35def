from tenantry.cli.app import app

app(prog_name="tenantry")
