"""
Packaging script for PyPI.
"""
import setuptools
from pathlib import Path

try:
	from boozetools.macroparse.runtime import make_tables
except ImportError:
	pass
else:
	make_tables(Path(__file__).parent / "milner" / "Milner.md")

setuptools.setup(
	name='milner-lang',
	version='0.1.0',
	packages=['milner', 'milner.static', 'milner.vm', ],
	package_data={
		'milner': ["Milner.md", "Milner.automaton"],
	},
	entry_points={
		'console_scripts': ["milner = milner.cmdline:main"],
	},
	license='MIT',
	description='A small statically-typed language with Hindley-Milner inference and a bytecode VM',
	long_description=open('README.md').read(),
	long_description_content_type="text/markdown",
	classifiers=[
		"Programming Language :: Python :: 3.9",
		"License :: OSI Approved :: MIT License",
		"Operating System :: OS Independent",
		"Development Status :: 3 - Alpha",
		"Intended Audience :: Developers",
		"Intended Audience :: Education",
		"Topic :: Software Development :: Interpreters",
		"Topic :: Software Development :: Compilers",
		"Topic :: Education",
		"Environment :: Console",
    ],
	python_requires='>=3.9',
	install_requires=[
		"booze-tools>=0.6.2.1",
	]
)
