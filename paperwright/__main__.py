from paperwright.cli import app

app(prog_name="paperwright")
