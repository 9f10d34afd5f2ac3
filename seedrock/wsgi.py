from seedrock import create_app

app = create_app()
