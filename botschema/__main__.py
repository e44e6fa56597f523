from botschema.compiler.emitter import _main

_main()
