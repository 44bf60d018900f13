from setuptools import find_packages, setup

setup(
    name='check-ssl-web',
    version='1.0.0',
    description='Web page reporting the TLS certificate of a domain',
    license='MIT',
    python_requires='>=3.8',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    package_data={'check_ssl_web': ['templates/*.html']},
    include_package_data=True,
    install_requires=[
        'cryptography>=42',
        'coloredlogs',
        'flask>=2.2',
        'shtab',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'check-ssl-web = check_ssl_web.main:main',
        ],
    },
)
