from setuptools import find_packages, setup

package_name = "depthimage_to_laserscan"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(include=[package_name, f"{package_name}.*"]),
    install_requires=[
        "setuptools",
        "numpy",
        "opencv-python-headless",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.10",
    zip_safe=True,
    maintainer="Psyched Dev",
    maintainer_email="devnull@example.com",
    description="Converts depth images into planar LaserScan messages",
    license="Apache-2.0",
    data_files=[
        ("share/ament_index/resource_index/packages", [f"resource/{package_name}"]),
        (f"share/{package_name}", ["package.xml"]),
        (f"share/{package_name}/launch", [f"launch/{package_name}.launch.py"]),
        (f"share/{package_name}/params", [f"params/{package_name}.yaml"]),
    ],
    entry_points={
        "console_scripts": [
            f"{package_name}_node = {package_name}.node:main",
            f"depthimage-to-laserscan = {package_name}.cli:main",
        ],
    },
)
