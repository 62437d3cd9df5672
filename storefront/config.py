import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or (
        'dev-secret-key-change-in-production'
    )
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or (
        'sqlite:///storefront.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Log file for the application logger; empty disables file output.
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')

    # Pagination configuration
    ITEMS_PER_PAGE = int(os.environ.get('ITEMS_PER_PAGE', 20))
    PRODUCTS_PER_PAGE = 12
    ORDERS_PER_PAGE = 10
    MAX_PER_PAGE = 100


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_FILE = ''
