# Copy this file to dev.py and adjust it to your local setup.

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': 'campmanager',
        'USER': 'campmanager',
        'PASSWORD': 'campmanager',
        'HOST': 'localhost',
        'PORT': '5432',
    }
}

# CREATE DATABASE campmanager;
# CREATE USER campmanager WITH PASSWORD 'campmanager';
# ALTER DATABASE campmanager OWNER TO campmanager;

AUTO_BACKGROUND_TASKS = True

ADMINS = [
    ('test', 'test@test.it')
]
