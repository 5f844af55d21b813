from setuptools import setup, find_packages

setup(name='larinf',
      version='0.1',
      description='Least Angle Regression with exact post-selection inference',
      license='BSD',
      packages=find_packages(exclude=['tests', 'tests.*']),
      python_requires='>=3.8',
      install_requires=[
          'numpy',
          'scipy>=1.6',
          'scikit-learn>=1.0',
      ],
      extras_require={
          'dev': ['pytest', 'flake8'],
      },
      include_package_data=True,
      zip_safe=False)
