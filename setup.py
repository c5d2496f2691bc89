"""
Org Auth Library
Multi-tenant authentication and organization access control for Django
"""

from setuptools import setup, find_packages
import os

# Read the README file
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Org Auth - multi-tenant authentication and organization access control"

setup(
    name="org-auth",
    version="1.0.0",
    description="Token sessions and role-based organization membership for multi-tenant Django apps",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["org_auth.tests", "org_auth.tests.*"]),
    include_package_data=True,
    classifiers=[
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Framework :: Django :: 5.0",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: System :: Systems Administration :: Authentication/Directory",
    ],
    keywords="django multi-tenant authentication authorization organization jwt refresh-token rbac",
    python_requires=">=3.10",
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14.0",
        "python-decouple>=3.8",
        "cryptography>=41.0.0",
        "PyJWT>=2.8.0",
        "psycopg2-binary>=2.9.0",
        "redis>=4.5.0",
        "celery>=5.3.0",
        "tenacity>=8.2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-django>=4.5.0",
            "pytest-cov>=4.1.0",
        ],
        "cache": [
            "django-redis>=5.2.0",
        ],
    },
    entry_points={
        "django.apps": [
            "org_auth=org_auth.apps.OrgAuthConfig",
        ],
    },
    zip_safe=False,
    platforms=["any"],
    license="MIT",
)
