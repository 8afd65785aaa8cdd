from mrwordcount.client.client import cli

cli()
