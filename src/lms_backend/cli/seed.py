import click
import yaml
from pydantic import ValidationError
from lms_backend.database import get_db
from lms_backend.interface.seed import SeedFactory
from lms_backend.services.seeding import Seeder
from lms_backend.cli.utils import handle_domain_exceptions

@click.command()
@click.argument("filename", type=click.Path(exists=True, dir_okay=False))
@handle_domain_exceptions
def seed(filename):

  try:
    document = SeedFactory.read_seed_from_file(filename)
  except (ValidationError, yaml.YAMLError) as e:
    raise click.ClickException(f"Invalid seed file: {e}")

  with next(get_db()) as session:
    counts = Seeder(session).load(document)

  click.echo(yaml.safe_dump(counts, sort_keys=False))
