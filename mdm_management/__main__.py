import atexit

from mdm_management import create_app, shutdown

app = create_app()
atexit.register(shutdown, app)

if __name__ == '__main__':
    app.run(host=app.config['HOST'], port=app.config['PORT'])
