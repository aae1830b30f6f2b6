import click
import yaml
from lms_backend.database import get_db
from lms_backend.services.assignments import AssignmentService
from lms_backend.services.memberships import MembershipService

@click.command()
@click.option("--strict", is_flag=True, default=False, help="Exit with status 1 when issues are found")
def validate(strict):

  with next(get_db()) as session:
    report = AssignmentService(session).validate()

  click.echo(yaml.safe_dump(report, sort_keys=False))

  if strict and report["issues"]:
    raise click.exceptions.Exit(1)

@click.command()
@click.option("--strict", is_flag=True, default=False, help="Exit with status 1 when references disagree")
def check(strict):

  with next(get_db()) as session:
    report = MembershipService(session).check_consistency()

  click.echo(yaml.safe_dump(report, sort_keys=False))

  if strict and any(report.values()):
    raise click.exceptions.Exit(1)

@click.command()
def sync():

  with next(get_db()) as session:
    fixed = MembershipService(session).sync_back_references()

  click.echo(f"Repaired {fixed} back-reference(s)")

@click.group()
def assignments():
    pass

assignments.add_command(validate,"validate")

@click.group()
def sections():
    pass

sections.add_command(check,"check")
sections.add_command(sync,"sync")
