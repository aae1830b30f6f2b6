import functools
import click
from fastapi import HTTPException

def handle_domain_exceptions(func):
  @functools.wraps(func)
  def wrapper(*args, **kwargs):
    try:
      return func(*args, **kwargs)
    except HTTPException as e:
      message = e.detail.get("message") if isinstance(e.detail, dict) else e.detail
      click.echo(f"[{click.style(e.status_code,fg='red')}] {message}")
      raise click.exceptions.Exit(1)

  return wrapper
