#!/usr/bin/env python
"""Command line entrypoint: ``./manage.py migrate``, ``./manage.py health_monitor --once`` and friends."""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clinic.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError("Django is not importable; install the project with `pip install -e .`") from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
