from environ import Env

env = Env()

DATABASES = {}

FEATURESERVER_STRICT_BBOX = env.bool("FEATURESERVER_STRICT_BBOX", default=False)
FEATURESERVER_STRICT_NUMERIC_PARAMS = env.bool(
    "FEATURESERVER_STRICT_NUMERIC_PARAMS", default=True
)

INSTALLED_APPS = [
    "featureserver",
]

# Test session requirements

SECRET_KEY = "insecure-tests-only"

TIME_ZONE = "Europe/Amsterdam"

ROOT_URLCONF = "tests.test_featureserver.urls"
