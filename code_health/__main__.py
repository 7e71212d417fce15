from code_health.cli import cli

if __name__ == "__main__":
    cli()
