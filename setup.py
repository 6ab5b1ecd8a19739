from setuptools import setup, find_packages

setup(
    name="answer_paper_grader",
    version="0.1.0",
    packages=find_packages(include=["src", "src.*", "webapp", "webapp.*", "utils", "utils.*"]),
    py_modules=["run_app", "seed_users"],
    install_requires=[
        "Flask>=2.3",
        "Flask-SQLAlchemy>=3.1",
        "SQLAlchemy>=2.0",
        "Flask-Login>=0.6.3",
        "Flask-Cors>=4.0",
        "Flask-WTF>=1.1",
        "WTForms>=3.0",
        "Werkzeug>=2.3",
        "waitress>=2.1",
        "python-dotenv>=1.0.1",
        "PyJWT>=2.8",
        "openai>=1.0",
        "google-generativeai>=0.5",
        "requests>=2.31.0",
        "PyMuPDF>=1.23.8",
        "python-docx>=1.1.0",
    ],
    extras_require={
        "tests": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "paper-grader=src.client.cli:main",
        ],
    },
    python_requires=">=3.9",
    author="Answer Paper Grader Team",
    description="Backend for uploading, transcribing and grading exam answer papers",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
