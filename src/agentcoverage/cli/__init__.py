"""
agentcoverage CLI - Audit agent contracts against a file tree.

Commands:
    agentcoverage audit     Build the coverage report
    agentcoverage explain   Show which agents know, write and read given files
"""

import click

from .audit import audit, explain


@click.group()
@click.version_option(package_name="agentcoverage")
def main():
    """agentcoverage - Which files do your agents actually cover?"""
    pass


main.add_command(audit)
main.add_command(explain)


if __name__ == "__main__":
    main()
