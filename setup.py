from setuptools import setup, find_packages

setup(
   name="couchsync",
   version="0.1.0",
   package_dir={"": "src"},
   packages=find_packages(where="src"),
   include_package_data=True,
   python_requires=">=3.8",
   install_requires=[
       "httpx>=0.24",
       "pydantic>=2.0",
       "json5",
       "PyYAML",
   ],
   extras_require={
       "test": ["pytest", "pytest-asyncio"],
   },
)
