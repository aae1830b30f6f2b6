import click
from dotenv import load_dotenv

from .db import db
from .seed import seed
from .maintenance import assignments, sections

@click.group()
def cli():
    load_dotenv()

cli.add_command(db,"db")
cli.add_command(seed,"seed")
cli.add_command(assignments,"assignments")
cli.add_command(sections,"sections")

if __name__ == '__main__':
    cli()
