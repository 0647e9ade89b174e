from setuptools import find_packages, setup

# setup.py rather than pyproject so python-for-android, which defaults to
# legacy builds, can install the packages from the repo root.

package_list = find_packages(
  include=[
    "entrypoints",
    "entrypoints.*",
    "backend",
    "backend.*",
    "os_interfaces",
    "os_interfaces.*",
    "notification",
    "notification.*",
    "reminders",
    "reminders.*",
  ]
)

setup(
  name="aquabalance",
  version="0.1.0",
  description="Daily hydration reminders with exact alarms and actionable notifications",
  python_requires=">=3.11",
  packages=package_list,
  include_package_data=True,
  install_requires=[
    "fastapi",
    "uvicorn[standard]",
    "pyyaml",
    "pydantic>=2",
    "python-dotenv",
    "platformdirs",
    "asgi-correlation-id",
  ],
  extras_require={
    "android": ["pyjnius", "cython==3.0.12", "buildozer"],
    "linux": ["desktop-notifier>=5", "pystemd"],
    "dev": ["pytest", "pytest-asyncio", "pytest-cov", "httpx", "tzdata"],
  },
  entry_points={
    "console_scripts": [
      "aquabalance=entrypoints.aquabalance_linux:main",
      "aquabalance-fire=notification.main:main",
    ],
  },
)
