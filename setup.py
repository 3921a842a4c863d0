from setuptools import setup

version = '1.0'

install_requires = [
    # -*- Extra requirements: -*-
    "numpy",
    ]

tests_require = [
    "pytest",
    ]

setup(name='schemconv',
      version=version,
      description="Convert Minecraft builds between litematic, schematic and schem files",
      long_description=open("./README.txt", "r").read(),
      # Get strings from http://pypi.python.org/pypi?%3Aaction=list_classifiers
      classifiers=[
          "Development Status :: 4 - Beta",
          "Environment :: Console",
          "Intended Audience :: End Users/Desktop",
          "Natural Language :: English",
          "Operating System :: OS Independent",
          "Programming Language :: Python :: 3",
          "Topic :: Utilities",
          "License :: OSI Approved :: MIT License",
          ],
      keywords='minecraft litematica schematic',
      license='MIT License',
      python_requires='>=3.8',
      py_modules=[
          "box",
          "convert",
          "entity",
          "litematic",
          "nbt",
          "packing",
          "palette",
          "schematic",
          "schemconv",
          "schembase",
          "volume",
          ],
      include_package_data=True,
      zip_safe=False,
      install_requires=install_requires,
      extras_require={"test": tests_require},
      entry_points="""
      # -*- Entry points: -*-
      [console_scripts]
      schemconv=schemconv:main
      """,
      )
