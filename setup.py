from setuptools import setup, find_packages

setup(
    name='geoimport',
    version='0.1.0',
    description='GeoJSON to flat triangle meshes: equirectangular projection, '
                'ear-clipping triangulation and road ribbons',
    packages=find_packages(include=['geoimport', 'geoimport.*']),
    python_requires='>=3.10',
    install_requires=[
        'numpy',
        'numba',
        'shapely>=2.1',
    ],
    extras_require={
        'tests': ['pytest'],
    },
)
