from quizcentral.cli import app

app()
