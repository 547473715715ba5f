from setuptools import setup, find_packages

setup(
    name='randomforest-visualization',
    version='1.0',
    packages=find_packages(exclude=['tests', 'experiments']),
    py_modules=[
        'app',
        'forest',
        'svg_renderer',
        'tree_evaluator',
        'tree_generator',
        'tree_layout',
        'voting',
    ],
    description='Interactive visualization of a random forest of synthetic decision trees',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.9',
    install_requires=[
        'graphviz>=0.20',
        'numpy',
        'pandas',
        'streamlit',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
