# Development images for singularitynet/opencog.
# Build contexts are relative to the directory given with -C (default: cwd).
DEFAULT_CONFIG = """
images:
  deps:
    flag: b
    tag: singularitynet/opencog-deps
    help: >-
      Build singularitynet/opencog-deps image. It is the base image for
      tools, cogutil, cogserver, and the buildbot images.
    build:
      context: base
      args:
        OCPKG_URL: "${OCPKG_URL}"
  cogutil:
    flag: c
    tag: singularitynet/cogutil
    requires: [deps]
    help: >-
      Build singularitynet/cogutil image. Builds singularitynet/opencog-deps
      first if it hasn't been built, as it forms its base image.
    build:
      context: cogutil
  cli:
    flag: t
    tag: singularitynet/opencog-dev:cli
    requires: [cogutil]
    help: >-
      Build singularitynet/opencog-dev:cli image. Builds
      singularitynet/opencog-deps and singularitynet/cogutil first if they
      haven't been built, as they form its base images.
    build:
      context: tools/cli
  minecraft:
    flag: e
    tag: singularitynet/minecraft:0.1.0
    requires: [cli]
    help: >-
      Build singularitynet/minecraft image. Builds all needed images first
      if they haven't already been built.
    build:
      context: minecraft
  moses:
    flag: m
    tag: singularitynet/moses
    requires: [cogutil]
    help: Build singularitynet/moses image.
    build:
      context: moses
  postgres:
    flag: p
    tag: singularitynet/postgres
    help: Build singularitynet/postgres image.
    build:
      context: postgres
  relex:
    flag: r
    tag: singularitynet/relex
    help: Build singularitynet/relex image.
    build:
      context: relex
  jupyter:
    flag: j
    tag: singularitynet/jupyter
    requires: [cli]
    help: >-
      Build singularitynet/jupyter image. It adds jupyter notebook to
      singularitynet/opencog-dev:cli.
    build:
      context: tools/jupyter_notebook
pull:
  - singularitynet/opencog-deps
  - singularitynet/cogutil
  - singularitynet/opencog-dev:cli
  - singularitynet/postgres
  - singularitynet/relex
"""
