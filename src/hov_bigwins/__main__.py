from hov_bigwins.cli import cli

cli()
