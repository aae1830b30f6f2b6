import click
from lms_backend.server import configure_logging, init_database

@click.command()
def init():
    configure_logging()
    init_database()
    click.echo("Database tables created")

@click.group()
def db():
    pass

db.add_command(init,"init")
