import setuptools

with open('README.md') as infile:
    long_description = infile.read()

with open('VERSION') as infile:
    version = infile.read().strip()

setuptools.setup(
    name='liquidvote',
    version=version,
    description='Liquid democracy delegation resolution and vote tabulation',
    long_description=long_description,
    long_description_content_type='text/markdown; charset=UTF-8',
    author='Liquidvote contributors',
    python_requires='>=3.7.0',
    packages=setuptools.find_packages(exclude=('tests', 'tests.*')),
    install_requires=[],
    extras_require={'test': ['pytest']},
    entry_points={
        'console_scripts': ['liquidvote = liquidvote.__main__:run'],
    },
    include_package_data=True,
    license='MIT',
    keywords='voting liquid democracy delegation proxy condorcet schulze python',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
    zip_safe=True
)
