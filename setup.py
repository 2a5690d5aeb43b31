from setuptools import setup, find_packages

import os
here = os.path.abspath(os.path.dirname(__file__))

# Get the long description from the relevant file
with open(os.path.join(here, 'README.rst')) as f:
    long_description = f.read()

# Get the version from the relevant file
with open(os.path.join(here, 'subid/_version.py')) as f:
    exec(f.read())
# Get the development status from the version string
if 'a' in __version__:
    devstatus = 'Development Status :: 3 - Alpha'
elif 'b' in __version__:
    devstatus = 'Development Status :: 4 - Beta'
else:
    devstatus = 'Development Status :: 5 - Production/Stable'

setup(
    name='subid',
    version=__version__,
    description=(
        'Subspace system identification from input-output data, with '
        'pole placement, H-infinity synthesis and Lyapunov solvers.'),
    long_description=long_description,
    keywords='system identification subspace MOESP N4SID control',
    license='Free BSD',
    classifiers=[
        # How mature is this project? Common values are
        # 3 - Alpha
        # 4 - Beta
        # 5 - Production/Stable
        devstatus,
        'Intended Audience :: Science/Research',
        'Intended Audience :: Education',
        'Topic :: Scientific/Engineering',
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        ],
    packages=find_packages(exclude=['doc']),
    package_dir={'subid': 'subid'},
    install_requires=['numpy', 'scipy'],
    extras_require={
        'mpi': ['mpi4py'],
        'test': ['pytest'],
        }
    )
