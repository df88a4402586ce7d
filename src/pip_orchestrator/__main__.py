from pip_orchestrator.cli import app

app()
